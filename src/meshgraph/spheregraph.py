"""SphereGraph — mesh whose vertices lie on a sphere of given radius.

Represents the Earth's surface, with height above (or below) sea level
kept in a separate ``elevation`` property.

Vertex properties
-----------------
- ``xyz`` — Cartesian coordinates, including the elevation
- ``uv`` — geographic coordinates ``(lat, lon)`` in degrees, with
  ``lat`` in ``[-90, 90]`` and ``lon`` in ``(-180, 180]``
- ``elevation`` — height above the sphere of radius ``radius``
- ``value`` — custom scalar, for instance water

``xyz`` and ``(uv, elevation, radius)`` describe the same point; every
mutation of one is followed by :meth:`SphereGraph.recalculate_cartesian`
or :meth:`SphereGraph.recalculate_spherical`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .coordinates import (
    cartesian_to_spherical,
    normalize_longitude,
    spherical_to_cartesian,
    validate_latitude,
)
from .meshgraph import MeshGraph

EARTH_RADIUS = 6371000.0


class SphereGraph(MeshGraph):
    """:class:`MeshGraph` embedded on a sphere of radius *radius*."""

    KIND = "sphere"
    _ARRAY_PROPS = ("xyz", "uv")

    def __init__(self, radius: float = EARTH_RADIUS) -> None:
        super().__init__()
        self.radius = float(radius)

    # ── Geographic accessors ────────────────────────────────────────

    def uv(self, v: int) -> np.ndarray:
        """``[lat, lon]`` of vertex *v* in degrees."""
        return np.array(self.graph.get_property(v, "uv"), dtype=float)

    def lat(self, v: int) -> float:
        return float(self.uv(v)[0])

    def lon(self, v: int) -> float:
        return float(self.uv(v)[1])

    def get_spherical(self, v: int) -> np.ndarray:
        """``[r, lat, lon]`` of vertex *v*, where ``r = radius + elevation``."""
        lat, lon = self.uv(v)
        return np.array([self.radius + self.get_elevation(v), lat, lon])

    def recalculate_cartesian(self, v: int) -> None:
        """Recompute ``xyz`` of *v* from its spherical coordinates."""
        self.graph.set_property(v, "xyz", spherical_to_cartesian(self.get_spherical(v)))

    def recalculate_spherical(self, v: int) -> None:
        """Recompute ``uv`` and ``elevation`` of *v* from its ``xyz``."""
        r, lat, lon = cartesian_to_spherical(self.xyz(v))
        self.graph.set_property(v, "elevation", float(r - self.radius))
        self.graph.set_property(v, "uv", np.array([lat, lon]))

    # ── MeshGraph capabilities ──────────────────────────────────────

    def add_vertex(
        self,
        coords: Sequence[float],
        elevation: Optional[float] = None,
        *,
        value: float = 0.0,
    ) -> int:
        """Add a vertex.

        Without *elevation*, *coords* are Cartesian ``xyz`` and the
        geographic representation is derived from them.  With it, *coords*
        are ``(lat, lon)``: latitude must lie in ``[-90, 90]``
        (:class:`~meshgraph.coordinates.DomainError` otherwise) and
        longitude is normalised into ``(-180, 180]``.
        """
        if elevation is None:
            xyz = np.array(coords[:3], dtype=float)
            v = self._new_vertex(value)
            self.graph.set_property(v, "xyz", xyz)
            self.recalculate_spherical(v)
        else:
            lat = float(validate_latitude(coords[0]))
            lon = normalize_longitude(float(coords[1]))
            v = self._new_vertex(value)
            self.graph.set_property(v, "uv", np.array([lat, lon]))
            self.graph.set_property(v, "elevation", float(elevation))
            self.recalculate_cartesian(v)
        self.vertex_count += 1
        return v

    def get_elevation(self, v: int) -> float:
        return float(self.graph.get_property(v, "elevation"))

    def set_elevation(self, v: int, elevation: float) -> None:
        self.graph.set_property(v, "elevation", float(elevation))
        self.recalculate_cartesian(v)

    def coords2D(self, v: int) -> np.ndarray:
        return self.uv(v)

    def get_value_cartesian(self, v: int) -> np.ndarray:
        coords = self.get_spherical(v)
        coords[0] += self.get_value(v)
        return spherical_to_cartesian(coords)

    def scale_graph(self, scale: float) -> None:
        """Scale the sphere and every normal vertex by *scale*.

        The radius is scaled once; each vertex then has its geographic
        coordinates recomputed from the scaled ``xyz``.
        """
        self.radius *= scale
        for v in self.normal_vertices():
            self.graph.set_property(v, "xyz", self.xyz(v) * scale)
            self.recalculate_spherical(v)

    # ── Validation / serialisation hooks ────────────────────────────

    def _coordinate_errors(self, v: int) -> List[str]:
        if not self.graph.has_property(v, "uv") or not self.graph.has_property(v, "elevation"):
            return [f"Vertex {v} has no geographic coordinates"]
        expected = spherical_to_cartesian(self.get_spherical(v))
        tolerance = 1e-9 * max(1.0, abs(self.radius))
        if not np.allclose(self.xyz(v), expected, rtol=1e-9, atol=tolerance):
            return [f"Vertex {v} has inconsistent Cartesian and geographic coordinates"]
        return []

    def _header(self) -> Dict[str, Any]:
        return {"radius": self.radius}

    @classmethod
    def _empty(cls, payload: dict) -> "SphereGraph":
        return cls(payload.get("radius", EARTH_RADIUS))

    def __repr__(self) -> str:
        return (
            f"SphereGraph with ({self.vertex_count} vertices), "
            f"({self.interior_count} interiors), ({self.hanging_count} hanging nodes), "
            f"({len(self.edges())} edges) and (radius {self.radius})"
        )
