"""Geometry strategies injected into the refinement productions.

Productions never look at coordinates themselves.  They receive a
:class:`RefinementStrategy` bundling three helpers:

- ``distance(g, v1, v2)`` — edge length used to find the longest edge
- ``new_coords(g, v1, v2)`` — midpoint of an edge being broken, in the
  variant's native form
- ``converter(g, coords)`` — turns that midpoint into the
  ``(coords, elevation)`` arguments of :meth:`MeshGraph.add_vertex`

:meth:`RefinementStrategy.for_graph` picks sensible defaults per variant.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Tuple

import numpy as np

from .coordinates import cartesian_to_spherical, spherical_to_cartesian

if TYPE_CHECKING:
    from .meshgraph import MeshGraph
    from .spheregraph import SphereGraph

DistanceFn = Callable[["MeshGraph", int, int], float]
NewCoordsFn = Callable[["MeshGraph", int, int], np.ndarray]
ConverterFn = Callable[["MeshGraph", Sequence[float]], Tuple[Sequence[float], Optional[float]]]


# ═══════════════════════════════════════════════════════════════════
# Distances
# ═══════════════════════════════════════════════════════════════════

def cartesian_distance(g: "MeshGraph", v1: int, v2: int) -> float:
    """Straight-line 3-D distance between ``xyz`` of *v1* and *v2*."""
    return float(np.linalg.norm(g.xyz(v1) - g.xyz(v2)))


def planar_distance(g: "MeshGraph", v1: int, v2: int) -> float:
    """Euclidean distance between the 2-D coordinates of *v1* and *v2*."""
    return float(np.linalg.norm(g.coords2D(v1) - g.coords2D(v2)))


def great_circle_distance(g: "SphereGraph", v1: int, v2: int) -> float:
    """Haversine distance on the sphere of radius ``g.radius``."""
    lat1, lon1 = np.radians(g.uv(v1))
    lat2, lon2 = np.radians(g.uv(v2))
    a = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * g.radius * math.asin(min(1.0, math.sqrt(a)))


# ═══════════════════════════════════════════════════════════════════
# Midpoints
# ═══════════════════════════════════════════════════════════════════

def xyz_midpoint(g: "MeshGraph", v1: int, v2: int) -> np.ndarray:
    """Mean of the Cartesian coordinates."""
    return (g.xyz(v1) + g.xyz(v2)) / 2


def arc_midpoint(g: "MeshGraph", v1: int, v2: int) -> np.ndarray:
    """Chord midpoint pushed out to the mean distance of *v1* and *v2* from the origin."""
    a = g.xyz(v1)
    b = g.xyz(v2)
    mid = (a + b) / 2
    norm = np.linalg.norm(mid)
    if norm == 0:
        return mid
    return mid / norm * ((np.linalg.norm(a) + np.linalg.norm(b)) / 2)


def uv_midpoint(g: "SphereGraph", v1: int, v2: int) -> np.ndarray:
    """``[lat, lon, elevation]`` of the great-circle midpoint of *v1* and *v2*."""
    a = spherical_to_cartesian([1.0, *g.uv(v1)])
    b = spherical_to_cartesian([1.0, *g.uv(v2)])
    mid = a + b
    if np.linalg.norm(mid) < 1e-12:
        # antipodal points: no unique midpoint, fall back to the coordinate mean
        lat, lon = (g.uv(v1) + g.uv(v2)) / 2
    else:
        _, lat, lon = cartesian_to_spherical(mid)
    elevation = (g.get_elevation(v1) + g.get_elevation(v2)) / 2
    return np.array([lat, lon, elevation])


# ═══════════════════════════════════════════════════════════════════
# Converters
# ═══════════════════════════════════════════════════════════════════

def xyz_converter(g: "MeshGraph", coords: Sequence[float]) -> Tuple[Sequence[float], Optional[float]]:
    return coords[:3], None


def uv_converter(g: "MeshGraph", coords: Sequence[float]) -> Tuple[Sequence[float], Optional[float]]:
    return coords[:2], float(coords[2])


# ═══════════════════════════════════════════════════════════════════
# Strategy bundle
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RefinementStrategy:
    """Variant-specific geometry used by productions.

    Attributes
    ----------
    distance : DistanceFn
        Edge length function.
    new_coords : NewCoordsFn
        Midpoint of an edge, in whatever form *converter* expects.
    converter : ConverterFn
        Maps the midpoint to ``(coords, elevation)`` for ``add_vertex``.
    use_uv : bool
        Whether lengths are measured in 2-D / geographic coordinates.
    """

    distance: DistanceFn
    new_coords: NewCoordsFn
    converter: ConverterFn
    use_uv: bool = False

    @classmethod
    def for_graph(cls, g: "MeshGraph", use_uv: bool = False) -> "RefinementStrategy":
        """Default strategy for the variant of *g*."""
        from .spheregraph import SphereGraph

        if isinstance(g, SphereGraph):
            if use_uv:
                return cls(great_circle_distance, uv_midpoint, uv_converter, True)
            return cls(cartesian_distance, arc_midpoint, xyz_converter, False)
        if use_uv:
            return cls(planar_distance, xyz_midpoint, xyz_converter, True)
        return cls(cartesian_distance, xyz_midpoint, xyz_converter, False)

    def new_vertex_args(self, g: "MeshGraph", v1: int, v2: int) -> Tuple[Sequence[float], Optional[float]]:
        """``(coords, elevation)`` for a new node halfway between *v1* and *v2*."""
        return self.converter(g, self.new_coords(g, v1, v2))
