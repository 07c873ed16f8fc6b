"""Tests for the starting-mesh builders."""

import numpy as np
import pytest

from meshgraph.builders import (
    add_triangles,
    build_delaunay_mesh,
    build_icosahedron,
    build_rectangle_mesh,
)
from meshgraph.flatgraph import FlatGraph
from meshgraph.spheregraph import SphereGraph


def boundary_edges(g):
    return [e for e in g.edges() if g.is_on_boundary(*e)]


# ═══════════════════════════════════════════════════════════════════
# Rectangle
# ═══════════════════════════════════════════════════════════════════

class TestRectangle:
    def test_counts(self):
        g = build_rectangle_mesh(2, 3)
        assert isinstance(g, FlatGraph)
        assert g.vertex_count == 12
        assert g.interior_count == 12
        assert g.hanging_count == 0
        assert len(g.edges()) == 23
        assert len(boundary_edges(g)) == 10

    def test_extent(self):
        g = build_rectangle_mesh(2, 2, width=4.0, height=2.0, elevation=3.0)
        coords = np.array([g.xyz(v) for v in g.normal_vertices()])
        assert coords[:, 0].min() == 0.0
        assert coords[:, 0].max() == 4.0
        assert coords[:, 1].max() == 2.0
        assert np.all(coords[:, 2] == 3.0)

    def test_valid(self):
        assert build_rectangle_mesh(3, 2).validate() == []

    def test_triangles_unmarked(self):
        g = build_rectangle_mesh(1, 1)
        assert not any(g.should_refine(i) for i in g.interiors())

    @pytest.mark.parametrize("nx, ny", [(0, 1), (1, 0), (-1, 2)])
    def test_invalid_size(self, nx, ny):
        with pytest.raises(ValueError):
            build_rectangle_mesh(nx, ny)


# ═══════════════════════════════════════════════════════════════════
# Delaunay
# ═══════════════════════════════════════════════════════════════════

class TestDelaunay:
    def test_quadrilateral(self):
        g = build_delaunay_mesh([(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.2, 1.1)])
        assert g.vertex_count == 4
        assert g.interior_count == 2
        assert len(g.edges()) == 5
        assert len(boundary_edges(g)) == 4
        assert g.validate() == []

    def test_elevations_and_values(self):
        g = build_delaunay_mesh(
            [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)],
            elevations=[1.0, 2.0, 3.0],
            values=[0.5, 0.0, 0.0],
        )
        first = g.normal_vertices()[0]
        assert g.get_elevation(first) == 1.0
        assert g.get_value(first) == 0.5
        assert g.interior_count == 1

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            build_delaunay_mesh([(0.0, 0.0), (1.0, 0.0)])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            build_delaunay_mesh([(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)], elevations=[1.0])


# ═══════════════════════════════════════════════════════════════════
# Icosahedron
# ═══════════════════════════════════════════════════════════════════

class TestIcosahedron:
    def test_counts(self):
        g = build_icosahedron()
        assert isinstance(g, SphereGraph)
        assert g.vertex_count == 12
        assert g.interior_count == 20
        assert len(g.edges()) == 30
        assert boundary_edges(g) == []

    def test_on_sphere(self):
        g = build_icosahedron(10.0)
        assert g.radius == 10.0
        for v in g.normal_vertices():
            assert g.get_elevation(v) == pytest.approx(0.0, abs=1e-9)
            assert np.linalg.norm(g.xyz(v)) == pytest.approx(10.0)

    def test_equal_edges(self):
        g = build_icosahedron(1.0)
        lengths = [np.linalg.norm(g.xyz(u) - g.xyz(v)) for u, v in g.edges()]
        assert max(lengths) == pytest.approx(min(lengths))

    def test_valid(self):
        assert build_icosahedron(10.0).validate() == []

    def test_invalid_radius(self):
        with pytest.raises(ValueError):
            build_icosahedron(0.0)


def test_add_triangles_boundary():
    g = FlatGraph()
    a, b, c, d = (g.add_vertex(p, 0.0) for p in [(0, 0), (1, 0), (1, 1), (0, 1)])
    interiors = add_triangles(g, [(a, b, c), (a, c, d)])
    assert len(interiors) == 2
    assert not g.is_on_boundary(a, c)
    assert g.is_on_boundary(a, b)
    assert g.is_on_boundary(d, a)
