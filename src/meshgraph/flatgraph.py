"""FlatGraph — mesh on a flat plane whose vertices move up and down by elevation.

Suits a small patch of terrain where the curvature of the Earth is
negligible.  Vertices carry ``xyz`` with the elevation stored as ``xyz[2]``.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .meshgraph import MeshGraph


class FlatGraph(MeshGraph):
    """:class:`MeshGraph` embedded in a plane."""

    KIND = "flat"

    def add_vertex(
        self,
        coords: Sequence[float],
        elevation: Optional[float] = None,
        *,
        value: float = 0.0,
    ) -> int:
        """Add a vertex at ``coords``.

        Without *elevation* the first three entries of *coords* are taken
        as ``xyz``; with it, ``(coords[0], coords[1], elevation)``.
        """
        if elevation is None:
            if len(coords) < 3:
                raise ValueError("Flat vertices need x, y, z or an explicit elevation")
            xyz = np.array(coords[:3], dtype=float)
        else:
            xyz = np.array([coords[0], coords[1], elevation], dtype=float)

        v = self._new_vertex(value)
        self.graph.set_property(v, "xyz", xyz)
        self.vertex_count += 1
        return v

    def get_elevation(self, v: int) -> float:
        return float(self.graph.get_property(v, "xyz")[2])

    def set_elevation(self, v: int, elevation: float) -> None:
        coords = self.xyz(v)
        coords[2] = elevation
        self.graph.set_property(v, "xyz", coords)

    def coords2D(self, v: int) -> np.ndarray:
        return self.xyz(v)[:2]

    def get_value_cartesian(self, v: int) -> np.ndarray:
        return self.xyz(v) + np.array([0.0, 0.0, self.get_value(v)])

    def scale_graph(self, scale: float) -> None:
        for v in self.normal_vertices():
            self.graph.set_property(v, "xyz", self.xyz(v) * scale)
