"""Mesh builders — starting meshes for refinement.

- :func:`build_rectangle_mesh` — structured triangulation of a rectangle
- :func:`build_delaunay_mesh` — Delaunay triangulation of scattered points
- :func:`build_icosahedron` — icosahedron inscribed in a sphere

Edges used by a single triangle are flagged as boundary edges.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import ConvexHull, Delaunay

from .flatgraph import FlatGraph
from .meshgraph import MeshGraph
from .spheregraph import EARTH_RADIUS, SphereGraph
from .store import edge_key


def add_triangles(g: MeshGraph, triangles: Iterable[Tuple[int, int, int]]) -> list[int]:
    """Add an interior per triangle plus the mesh edges; return the interior ids.

    An edge shared by fewer than two of the given triangles is a boundary edge.
    """
    triangles = [tuple(int(v) for v in tri) for tri in triangles]
    usage: Counter = Counter()
    for a, b, c in triangles:
        for u, v in ((a, b), (b, c), (c, a)):
            usage[edge_key(u, v)] += 1

    interiors = [g.add_interior(a, b, c) for a, b, c in triangles]
    for (u, v), count in usage.items():
        g.add_edge(u, v, boundary=count < 2)
    return interiors


def build_rectangle_mesh(
    nx: int,
    ny: int,
    width: float = 1.0,
    height: float = 1.0,
    elevation: float = 0.0,
) -> FlatGraph:
    """Triangulate a ``width × height`` rectangle into ``2·nx·ny`` triangles.

    Each cell is cut along its lower-left to upper-right diagonal.
    """
    if nx < 1 or ny < 1:
        raise ValueError("nx and ny must be >= 1")

    g = FlatGraph()
    ids = {}
    for j in range(ny + 1):
        for i in range(nx + 1):
            ids[i, j] = g.add_vertex((width * i / nx, height * j / ny), elevation)

    triangles = []
    for j in range(ny):
        for i in range(nx):
            a, b = ids[i, j], ids[i + 1, j]
            c, d = ids[i + 1, j + 1], ids[i, j + 1]
            triangles.append((a, b, c))
            triangles.append((a, c, d))
    add_triangles(g, triangles)
    return g


def build_delaunay_mesh(
    points: Sequence[Sequence[float]],
    elevations: Optional[Sequence[float]] = None,
    values: Optional[Sequence[float]] = None,
) -> FlatGraph:
    """Delaunay triangulation of 2-D *points* as a :class:`FlatGraph`."""
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[0] < 3 or pts.shape[1] < 2:
        raise ValueError("At least three 2-D points are required")
    n = pts.shape[0]
    if elevations is not None and len(elevations) != n:
        raise ValueError("len(elevations) must equal len(points)")
    if values is not None and len(values) != n:
        raise ValueError("len(values) must equal len(points)")

    g = FlatGraph()
    ids = []
    for k, (x, y) in enumerate(pts[:, :2]):
        elevation = float(elevations[k]) if elevations is not None else 0.0
        value = float(values[k]) if values is not None else 0.0
        ids.append(g.add_vertex((x, y), elevation, value=value))

    tri = Delaunay(pts[:, :2])
    add_triangles(g, ((ids[a], ids[b], ids[c]) for a, b, c in tri.simplices))
    return g


def build_icosahedron(radius: float = EARTH_RADIUS) -> SphereGraph:
    """Regular icosahedron with its 12 vertices on a sphere of *radius*."""
    if radius <= 0:
        raise ValueError("radius must be > 0")

    phi = (1 + math.sqrt(5)) / 2
    corners = []
    for s1 in (-1, 1):
        for s2 in (-phi, phi):
            corners.extend([(0, s1, s2), (s1, s2, 0), (s2, 0, s1)])
    pts = np.array(corners, dtype=float)
    pts *= radius / np.linalg.norm(pts, axis=1)[:, None]

    g = SphereGraph(radius)
    ids = [g.add_vertex(p) for p in pts]
    hull = ConvexHull(pts)
    add_triangles(g, ((ids[a], ids[b], ids[c]) for a, b, c in hull.simplices))
    return g
