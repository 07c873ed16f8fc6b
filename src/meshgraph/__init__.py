"""MeshGraph — adaptive triangular mesh refinement with Rivara productions.

Public API is organised into layers:

- **Core** — coordinates, graph store, FlatGraph / SphereGraph, I/O
- **Refinement** — geometry strategies, productions P1–P6, driver
- **Building** — starting meshes
- **Rendering** — PNG output (requires matplotlib)
"""

# ── Core ────────────────────────────────────────────────────────────
from .coordinates import (
    DomainError,
    cartesian_to_spherical,
    spherical_to_cartesian,
    normalize_longitude,
    validate_latitude,
)
from .models import NodeType, MeshInvariantError
from .store import AttributedGraph
from .meshgraph import MeshGraph
from .flatgraph import FlatGraph
from .spheregraph import SphereGraph, EARTH_RADIUS
from .io import load_json, save_json

# ── Refinement ──────────────────────────────────────────────────────
from .strategies import (
    RefinementStrategy,
    cartesian_distance,
    planar_distance,
    great_circle_distance,
    xyz_midpoint,
    arc_midpoint,
    uv_midpoint,
    xyz_converter,
    uv_converter,
)
from .productions import (
    PRODUCTIONS,
    check_p1,
    check_p2,
    check_p3,
    check_p4,
    check_p5,
    check_p6,
    transform_p1,
    transform_p2,
    transform_p3,
    transform_p4,
    transform_p5,
    transform_p6,
)
from .refiner import (
    RefinementConfig,
    RefinementReport,
    apply_productions,
    run_transformations,
    refine,
    mark_for_refinement,
    mark_longer_than,
    refine_to_size,
)

# ── Building ────────────────────────────────────────────────────────
from .builders import (
    add_triangles,
    build_rectangle_mesh,
    build_delaunay_mesh,
    build_icosahedron,
)

# ── Rendering (requires matplotlib) ────────────────────────────────
from .render import render_png

__all__ = [
    # Core
    "DomainError",
    "cartesian_to_spherical",
    "spherical_to_cartesian",
    "normalize_longitude",
    "validate_latitude",
    "NodeType",
    "MeshInvariantError",
    "AttributedGraph",
    "MeshGraph",
    "FlatGraph",
    "SphereGraph",
    "EARTH_RADIUS",
    "load_json",
    "save_json",
    # Refinement
    "RefinementStrategy",
    "cartesian_distance",
    "planar_distance",
    "great_circle_distance",
    "xyz_midpoint",
    "arc_midpoint",
    "uv_midpoint",
    "xyz_converter",
    "uv_converter",
    "PRODUCTIONS",
    "check_p1",
    "check_p2",
    "check_p3",
    "check_p4",
    "check_p5",
    "check_p6",
    "transform_p1",
    "transform_p2",
    "transform_p3",
    "transform_p4",
    "transform_p5",
    "transform_p6",
    "RefinementConfig",
    "RefinementReport",
    "apply_productions",
    "run_transformations",
    "refine",
    "mark_for_refinement",
    "mark_longer_than",
    "refine_to_size",
    # Building
    "add_triangles",
    "build_rectangle_mesh",
    "build_delaunay_mesh",
    "build_icosahedron",
    # Rendering
    "render_png",
]
