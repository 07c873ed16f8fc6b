"""Tests for the P1–P6 refinement productions.

Every test starts from the triangle A(0,0), B(4,0), C(1,2) whose longest
side is AB (4 against |BC| ≈ 3.61 and |CA| ≈ 2.24).  Sides listed in
*hanging* are broken by a hanging node, the others are plain edges.
"""

import pytest

from meshgraph.flatgraph import FlatGraph
from meshgraph.models import MeshInvariantError
from meshgraph.productions import (
    P1Match,
    P2Match,
    P3Match,
    P4Match,
    P5Match,
    P6Match,
    PRODUCTIONS,
    break_edge,
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
from meshgraph.spheregraph import SphereGraph
from meshgraph.strategies import RefinementStrategy, cartesian_distance


CORNERS = {"A": (0.0, 0.0), "B": (4.0, 0.0), "C": (1.0, 2.0)}
SIDES = ("AB", "BC", "CA")
STRATEGY = RefinementStrategy.for_graph(FlatGraph())


def build(hanging=(), boundary=(), refine=False, at=None):
    """Single-triangle mesh; returns ``(graph, interior, {name: id})``."""
    g = FlatGraph()
    nodes = {name: g.add_vertex(xy, 0.0) for name, xy in CORNERS.items()}
    for side in SIDES:
        a, b = nodes[side[0]], nodes[side[1]]
        on_boundary = side in boundary
        if side in hanging:
            pos = (at or {}).get(side)
            if pos is None:
                (xa, ya), (xb, yb) = CORNERS[side[0]], CORNERS[side[1]]
                pos = ((xa + xb) / 2, (ya + yb) / 2)
            h = g.add_hanging(a, b, pos, 0.0)
            g.add_edge(a, h, boundary=on_boundary)
            g.add_edge(h, b, boundary=on_boundary)
            nodes["h" + side] = h
        else:
            g.add_edge(a, b, boundary=on_boundary)
    center = g.add_interior(nodes["A"], nodes["B"], nodes["C"], refine=refine)
    return g, center, nodes


def children(g):
    """Corner sets of every interior, for order-independent comparison."""
    return sorted(sorted(g.interiors_vertices(i)) for i in g.interiors())


ALL_CHECKS = [check_p1, check_p2, check_p3, check_p4, check_p5, check_p6]
ALL_TRANSFORMS = [transform_p1, transform_p2, transform_p3,
                  transform_p4, transform_p5, transform_p6]


# ═══════════════════════════════════════════════════════════════════
# Which production fires
# ═══════════════════════════════════════════════════════════════════

class TestDispatch:
    """Exactly one production matches each local configuration."""

    @pytest.mark.parametrize("hanging, refine, expected", [
        ((), True, "P1"),
        (("AB",), False, "P2"),
        (("BC",), False, "P3"),
        (("CA",), False, "P3"),
        (("AB", "BC"), False, "P4"),
        (("AB", "CA"), False, "P4"),
        (("BC", "CA"), False, "P5"),
        (("AB", "BC", "CA"), False, "P6"),
    ])
    def test_single_match(self, hanging, refine, expected):
        g, center, _ = build(hanging, refine=refine)
        matched = [
            name for name, check in zip(PRODUCTIONS, ALL_CHECKS)
            if check(g, center, cartesian_distance) is not None
        ]
        assert matched == [expected]

    def test_nothing_fires_on_unmarked_conforming_triangle(self):
        g, center, _ = build()
        for check in ALL_CHECKS:
            assert check(g, center, cartesian_distance) is None

    def test_non_interior_never_matches(self):
        g, _, nodes = build(("AB", "BC", "CA"), refine=True)
        for check in ALL_CHECKS:
            assert check(g, nodes["A"], cartesian_distance) is None
            assert check(g, nodes["hAB"], cartesian_distance) is None

    def test_non_interior_transform_is_noop(self):
        g, _, nodes = build(SIDES, refine=True)
        snapshot = g.to_dict()
        for node in (nodes["A"], nodes["hAB"]):
            for transform in ALL_TRANSFORMS:
                assert not transform(g, node, STRATEGY)
        assert g.to_dict() == snapshot

    @pytest.mark.parametrize("hanging", [(), ("AB",), ("BC", "CA"), SIDES])
    def test_checks_repeatable(self, hanging):
        g, center, _ = build(hanging, refine=True)
        for check in ALL_CHECKS:
            assert check(g, center, cartesian_distance) == check(g, center, cartesian_distance)

    def test_refine_flag_ignored_beyond_p1(self):
        g, center, _ = build(("AB",), refine=True)
        assert check_p1(g, center, cartesian_distance) is None
        assert check_p2(g, center, cartesian_distance) is not None

    @pytest.mark.parametrize("hanging, refine", [
        ((), False),
        ((), True),
        (("AB",), False),
        (("BC",), False),
        (("AB", "BC"), False),
        (("BC", "CA"), False),
        (("AB", "BC", "CA"), False),
    ])
    def test_failed_transforms_leave_graph_unchanged(self, hanging, refine):
        g, center, _ = build(hanging, refine=refine)
        snapshot = g.to_dict()
        fired = [t(g, center, STRATEGY) for t in ALL_TRANSFORMS]
        # only the first matching production runs; the rest see a removed center
        assert fired.count(True) <= 1
        if not any(fired):
            assert g.to_dict() == snapshot


# ═══════════════════════════════════════════════════════════════════
# Individual productions
# ═══════════════════════════════════════════════════════════════════

class TestP1:
    def test_match(self):
        g, center, n = build(refine=True)
        assert check_p1(g, center, cartesian_distance) == P1Match(n["A"], n["B"], n["C"])

    def test_unmarked(self):
        g, center, _ = build()
        assert not transform_p1(g, center, STRATEGY)
        assert g.interiors() == [center]

    def test_transform(self):
        g, center, n = build(refine=True)
        assert transform_p1(g, center, STRATEGY)
        assert not g.is_interior(center)
        assert g.interior_count == 2
        assert g.vertex_count == 3
        assert g.hanging_count == 1
        (h,) = g.hanging_nodes()
        assert list(g.xyz(h)) == [2.0, 0.0, 0.0]
        assert set(g.hanging_between(h)) == {n["A"], n["B"]}
        assert g.has_edge(h, n["C"])
        assert not g.has_edge(n["A"], n["B"])
        assert children(g) == sorted([sorted([n["A"], h, n["C"]]), sorted([h, n["B"], n["C"]])])

    def test_children_unmarked(self):
        g, center, _ = build(refine=True)
        transform_p1(g, center, STRATEGY)
        assert not any(g.should_refine(i) for i in g.interiors())

    def test_boundary_edge_gets_regular_vertex(self):
        g, center, n = build(refine=True, boundary=("AB",))
        transform_p1(g, center, STRATEGY)
        assert g.hanging_count == 0
        assert g.vertex_count == 4
        new = [v for v in g.normal_vertices() if v not in n.values()]
        assert len(new) == 1
        assert g.is_on_boundary(n["A"], new[0])
        assert g.is_on_boundary(new[0], n["B"])
        assert not g.is_on_boundary(new[0], n["C"])
        assert g.validate() == []

    def test_does_not_break_half_of_broken_edge(self):
        g = FlatGraph()
        a = g.add_vertex([0.0, 0.0], 0.0)
        b = g.add_vertex([4.0, 0.0], 0.0)
        h = g.add_hanging(a, b, [2.0, 0.0], 0.0)
        d = g.add_vertex([1.0, 0.5], 0.0)
        for u, v in ((a, h), (h, b), (h, d), (d, a)):
            g.add_edge(u, v)
        center = g.add_interior(a, h, d, refine=True)
        assert check_p1(g, center, cartesian_distance) is None


class TestP2:
    def test_match(self):
        g, center, n = build(("AB",))
        assert check_p2(g, center, cartesian_distance) == P2Match(
            n["A"], n["B"], n["C"], n["hAB"]
        )

    def test_transform(self):
        g, center, n = build(("AB",))
        assert transform_p2(g, center, STRATEGY)
        assert g.hanging_count == 0
        assert g.vertex_count == 4
        assert g.interior_count == 2
        assert g.is_vertex(n["hAB"])
        assert g.has_edge(n["hAB"], n["C"])
        assert children(g) == sorted([
            sorted([n["A"], n["hAB"], n["C"]]),
            sorted([n["hAB"], n["B"], n["C"]]),
        ])
        assert g.validate() == []

    def test_hanging_elsewhere(self):
        g, center, _ = build(("BC",))
        assert not transform_p2(g, center, STRATEGY)

    def test_missing_between_vertices_is_fatal(self):
        g, center, n = build(("AB",))
        g.graph.remove_property(n["hAB"], "v1")
        with pytest.raises(MeshInvariantError):
            transform_p2(g, center, STRATEGY)


class TestP3:
    def test_match(self):
        g, center, n = build(("BC",))
        assert check_p3(g, center, cartesian_distance) == P3Match(
            n["A"], n["B"], n["C"], n["hBC"]
        )

    def test_transform(self):
        g, center, n = build(("BC",))
        assert transform_p3(g, center, STRATEGY)
        assert g.interior_count == 2
        assert g.vertex_count == 3
        assert g.hanging_count == 2
        assert g.is_hanging(n["hBC"])
        (new,) = [h for h in g.hanging_nodes() if h != n["hBC"]]
        assert set(g.hanging_between(new)) == {n["A"], n["B"]}
        assert g.validate() == []

    def test_boundary_longest_side(self):
        g, center, n = build(("BC",), boundary=("AB",))
        transform_p3(g, center, STRATEGY)
        assert g.hanging_nodes() == [n["hBC"]]
        assert g.vertex_count == 4

    def test_hanging_on_longest(self):
        g, center, _ = build(("AB",))
        assert not transform_p3(g, center, STRATEGY)


class TestP4:
    def test_match(self):
        g, center, n = build(("AB", "BC"))
        assert check_p4(g, center, cartesian_distance) == P4Match(
            n["A"], n["B"], n["C"], n["hAB"], n["hBC"]
        )

    def test_transform(self):
        g, center, n = build(("AB", "BC"))
        assert transform_p4(g, center, STRATEGY)
        assert g.hanging_nodes() == [n["hBC"]]
        assert g.vertex_count == 4
        assert g.interior_count == 2
        assert g.has_edge(n["hAB"], n["C"])

    def test_needs_longest_hanging(self):
        g, center, _ = build(("BC", "CA"))
        assert not transform_p4(g, center, STRATEGY)


class TestP5:
    def test_match(self):
        g, center, n = build(("BC", "CA"))
        assert check_p5(g, center, cartesian_distance) == P5Match(
            n["A"], n["B"], n["C"], n["hBC"], n["hCA"]
        )

    def test_transform(self):
        g, center, n = build(("BC", "CA"))
        assert transform_p5(g, center, STRATEGY)
        assert g.hanging_count == 3
        assert g.vertex_count == 3
        assert g.interior_count == 2
        assert not g.has_edge(n["A"], n["B"])

    def test_longest_hanging(self):
        g, center, _ = build(("AB", "CA"))
        assert not transform_p5(g, center, STRATEGY)


class TestP6:
    def test_match(self):
        g, center, n = build(SIDES)
        m = check_p6(g, center, cartesian_distance)
        assert m == P6Match(n["A"], n["B"], n["C"], n["hAB"], n["hBC"], n["hCA"])
        assert list(m) == [n["A"], n["B"], n["C"], n["hAB"], n["hBC"], n["hCA"]]

    def test_transform(self):
        g, center, n = build(SIDES)
        assert transform_p6(g, center, STRATEGY)
        assert g.vertex_count == 4
        assert g.hanging_count == 2
        assert g.interior_count == 2
        assert g.is_vertex(n["hAB"])
        assert sorted(g.hanging_nodes()) == sorted([n["hBC"], n["hCA"]])
        assert g.has_edge(n["hAB"], n["C"])
        assert not g.is_interior(center)
        assert children(g) == sorted([
            sorted([n["A"], n["hAB"], n["C"]]),
            sorted([n["hAB"], n["B"], n["C"]]),
        ])
        assert g.validate() == []

    def test_two_hanging(self):
        g, center, _ = build(("AB", "BC"))
        assert not transform_p6(g, center, STRATEGY)

    def test_split_candidate_not_longest(self):
        # a far-off hanging node on BC makes BC the longest split, but AB is
        # still the longest side between corners
        g, center, _ = build(SIDES, at={"BC": (10.0, 10.0)})
        snapshot = g.to_dict()
        assert check_p6(g, center, cartesian_distance) is None
        assert not transform_p6(g, center, STRATEGY)
        assert g.to_dict() == snapshot

    def test_deterministic(self):
        results = []
        for _ in range(2):
            g, center, _ = build(SIDES)
            transform_p6(g, center, STRATEGY)
            results.append(g.to_dict())
        assert results[0] == results[1]

    def test_sphere_uv(self):
        g = SphereGraph(10.0)
        strategy = RefinementStrategy.for_graph(g, use_uv=True)
        a = g.add_vertex([0.0, 0.0], 0.0)
        b = g.add_vertex([0.0, 40.0], 0.0)
        c = g.add_vertex([20.0, 10.0], 0.0)
        hanging = {}
        for u, v in ((a, b), (b, c), (c, a)):
            coords, elevation = strategy.new_vertex_args(g, u, v)
            h = g.add_hanging(u, v, coords, elevation)
            g.add_edge(u, h)
            g.add_edge(h, v)
            hanging[(u, v)] = h
        center = g.add_interior(a, b, c)

        assert transform_p6(g, center, strategy)
        h_ab = hanging[(a, b)]
        assert g.is_vertex(h_ab)
        assert g.has_edge(h_ab, c)
        assert g.lat(h_ab) == pytest.approx(0.0)
        assert g.lon(h_ab) == pytest.approx(20.0)
        assert g.hanging_count == 2
        assert g.validate() == []


# ═══════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════

class TestBreakEdge:
    def test_value_is_mean(self):
        g = FlatGraph()
        a = g.add_vertex([0.0, 0.0, 0.0], value=1.0)
        b = g.add_vertex([2.0, 0.0, 2.0], value=3.0)
        g.add_edge(a, b)
        n = break_edge(g, a, b, STRATEGY)
        assert g.get_value(n) == 2.0
        assert list(g.xyz(n)) == [1.0, 0.0, 1.0]
        assert g.is_hanging(n)
        assert g.get_hanging_node_between(a, b) == n

    def test_boundary(self):
        g = FlatGraph()
        a = g.add_vertex([0.0, 0.0, 0.0])
        b = g.add_vertex([2.0, 0.0, 0.0])
        g.add_edge(a, b, boundary=True)
        n = break_edge(g, a, b, STRATEGY)
        assert g.is_vertex(n)
        assert g.is_on_boundary(a, n)
        assert g.is_on_boundary(n, b)
