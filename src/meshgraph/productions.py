"""Rivara longest-edge refinement productions P1–P6.

Every production is a pair of functions:

- ``check_pN(g, center, distance)`` — pure pattern match on the triangle
  represented by interior *center*; returns a frozen match record or
  ``None`` when the production does not apply.
- ``transform_pN(g, center, strategy)`` — runs the check and, on a match,
  rewrites the graph in place.  Returns ``True`` iff the graph changed.

Productions differ in the local topology they require, i.e. how many
of the three triangle sides carry a hanging node and whether the longest
side is one of them::

    P1  no hanging node, marked for refinement   break longest side
    P2  one hanging node, on the longest side    split at the hanging node
    P3  one hanging node, elsewhere              break longest side
    P4  two hanging nodes, one on longest side   split at that node
    P5  two hanging nodes, neither on longest    break longest side
    P6  three hanging nodes                      split at longest side's node

Lengths are measured between true corners with the injected ``distance``.
Ties prefer sides carrying a hanging node, then the corner order of the
interior.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from .models import MeshInvariantError

if TYPE_CHECKING:
    from .meshgraph import MeshGraph
    from .strategies import DistanceFn, RefinementStrategy

logger = logging.getLogger(__name__)

TransformFn = Callable[["MeshGraph", int, "RefinementStrategy"], bool]


# ═══════════════════════════════════════════════════════════════════
# Match records
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class P1Match:
    v1: int
    v2: int
    v3: int


@dataclass(frozen=True)
class P2Match:
    v1: int
    v2: int
    v3: int
    h1: int


@dataclass(frozen=True)
class P3Match:
    """``(v1, v2)`` is the longest side; *h* hangs on another side."""

    v1: int
    v2: int
    v3: int
    h: int


@dataclass(frozen=True)
class P4Match:
    v1: int
    v2: int
    v3: int
    h1: int
    h2: int


@dataclass(frozen=True)
class P5Match:
    v1: int
    v2: int
    v3: int
    h1: int
    h2: int


@dataclass(frozen=True)
class P6Match:
    """``h1`` hangs on ``v1``–``v2``, ``h2`` on ``v2``–``v3``, ``h3`` on ``v3``–``v1``."""

    v1: int
    v2: int
    v3: int
    h1: int
    h2: int
    h3: int

    def __iter__(self):
        return iter((self.v1, self.v2, self.v3, self.h1, self.h2, self.h3))


# ═══════════════════════════════════════════════════════════════════
# Local topology
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _Side:
    """Side ``v1``–``v2`` of a triangle, opposite corner ``v3``."""

    v1: int
    v2: int
    v3: int
    hanging: Optional[int]
    direct: bool


def _sides(g: "MeshGraph", center: int) -> Optional[List[_Side]]:
    """The three sides of interior *center*, or ``None`` if it is not an interior.

    For corners ``(vA, vB, vC)`` the sides are ``vB–vC``, ``vC–vA`` and
    ``vA–vB`` in that order, so consecutive sides share a corner.
    """
    if not g.is_interior(center):
        return None
    corners = g.interiors_vertices(center)
    if len(corners) != 3:
        raise MeshInvariantError(f"Interior {center} has {len(corners)} corners")
    vA, vB, vC = corners

    sides = []
    for a, b, c in ((vB, vC, vA), (vC, vA, vB), (vA, vB, vC)):
        h = g.get_hanging_node_between(a, b)
        if h is not None and h in corners:
            h = None
        sides.append(_Side(a, b, c, h, g.has_edge(a, b)))
    return sides


def _well_formed(sides: Sequence[_Side]) -> bool:
    """Every side is either an edge or broken by exactly one hanging node."""
    return all(s.direct or s.hanging is not None for s in sides)


def _breakable(g: "MeshGraph", side: _Side) -> bool:
    """A side may be broken unless it is half of an edge whose hanging node is unresolved."""
    for a, b in ((side.v1, side.v2), (side.v2, side.v1)):
        if g.is_hanging(a) and b in g.hanging_between(a):
            return False
    return True


def _count_hanging(sides: Sequence[_Side]) -> int:
    return sum(1 for s in sides if s.hanging is not None)


def _longest(g: "MeshGraph", sides: Sequence[_Side], distance: "DistanceFn") -> tuple[int, List[float]]:
    """Index of the longest side and all side lengths."""
    lengths = [distance(g, s.v1, s.v2) for s in sides]
    longest = max(lengths)
    candidates = [k for k, length in enumerate(lengths) if length == longest]
    for k in candidates:
        if sides[k].hanging is not None:
            return k, lengths
    return candidates[0], lengths


# ═══════════════════════════════════════════════════════════════════
# Mutations shared by productions
# ═══════════════════════════════════════════════════════════════════

def _split_at(g: "MeshGraph", center: int, v1: int, v2: int, v3: int, h: int) -> None:
    """Promote *h* on ``v1``–``v2`` and split *center* into two triangles."""
    g.unset_hanging(h)
    g.add_edge(v3, h)
    g.add_interior(v1, h, v3)
    g.add_interior(h, v2, v3)
    g.rem_vertex(center)


def break_edge(g: "MeshGraph", v1: int, v2: int, strategy: "RefinementStrategy") -> int:
    """Replace edge ``v1``–``v2`` with a new node at its midpoint and return it.

    The new node is hanging between *v1* and *v2* unless the edge lies on
    the mesh boundary, where no neighbouring triangle is left to promote it.
    Its value is the mean of the endpoint values.
    """
    coords, elevation = strategy.new_vertex_args(g, v1, v2)
    value = (g.get_value(v1) + g.get_value(v2)) / 2
    boundary = g.is_on_boundary(v1, v2)
    g.rem_edge(v1, v2)
    if boundary:
        n = g.add_vertex(coords, elevation, value=value)
    else:
        n = g.add_hanging(v1, v2, coords, elevation, value=value)
    g.add_edge(v1, n, boundary=boundary)
    g.add_edge(n, v2, boundary=boundary)
    return n


def _bisect(
    g: "MeshGraph",
    center: int,
    v1: int,
    v2: int,
    v3: int,
    strategy: "RefinementStrategy",
) -> int:
    n = break_edge(g, v1, v2, strategy)
    g.add_edge(n, v3)
    g.add_interior(v1, n, v3)
    g.add_interior(n, v2, v3)
    g.rem_vertex(center)
    return n


# ═══════════════════════════════════════════════════════════════════
# P1: marked triangle without hanging nodes
# ═══════════════════════════════════════════════════════════════════

def check_p1(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P1Match]:
    sides = _sides(g, center)
    if sides is None or not g.should_refine(center):
        return None
    if not all(s.direct for s in sides) or _count_hanging(sides):
        return None
    k, _ = _longest(g, sides, distance)
    s = sides[k]
    if not _breakable(g, s):
        return None
    return P1Match(s.v1, s.v2, s.v3)


def transform_p1(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Break the longest side of a triangle marked for refinement.

    ```text
         v                v
        / \\              /|\\
       /   \\     =>     / | \\
      /     \\          /  |  \\
     v-------v        v---h---v
    ```
    """
    m = check_p1(g, center, strategy.distance)
    if m is None:
        return False
    n = _bisect(g, center, m.v1, m.v2, m.v3, strategy)
    logger.debug("P1: interior %d bisected at new node %d", center, n)
    return True


# ═══════════════════════════════════════════════════════════════════
# P2: one hanging node on the longest side
# ═══════════════════════════════════════════════════════════════════

def check_p2(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P2Match]:
    sides = _sides(g, center)
    if sides is None or not _well_formed(sides) or _count_hanging(sides) != 1:
        return None
    k, _ = _longest(g, sides, distance)
    s = sides[k]
    if s.hanging is None:
        return None
    return P2Match(s.v1, s.v2, s.v3, s.hanging)


def transform_p2(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Split a triangle at the hanging node on its longest side.

    ```text
         v                v
        / \\              /|\\
       /   \\     =>     / | \\
      /     \\          /  |  \\
     v---h---v        v---v---v
    ```
    """
    m = check_p2(g, center, strategy.distance)
    if m is None:
        return False
    _split_at(g, center, m.v1, m.v2, m.v3, m.h1)
    logger.debug("P2: interior %d split at promoted node %d", center, m.h1)
    return True


# ═══════════════════════════════════════════════════════════════════
# P3: one hanging node, not on the longest side
# ═══════════════════════════════════════════════════════════════════

def check_p3(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P3Match]:
    sides = _sides(g, center)
    if sides is None or not _well_formed(sides) or _count_hanging(sides) != 1:
        return None
    k, _ = _longest(g, sides, distance)
    s = sides[k]
    if s.hanging is not None:
        return None
    if not _breakable(g, s):
        return None
    h = next(side.hanging for side in sides if side.hanging is not None)
    return P3Match(s.v1, s.v2, s.v3, h)


def transform_p3(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Break the longest side; the existing hanging node stays for a child.

    ```text
         v                v
        / \\              /|\\
       h   \\     =>     h | \\
      /     \\          /  |  \\
     v-------v        v---h---v
    ```
    """
    m = check_p3(g, center, strategy.distance)
    if m is None:
        return False
    n = _bisect(g, center, m.v1, m.v2, m.v3, strategy)
    logger.debug("P3: interior %d bisected at new node %d", center, n)
    return True


# ═══════════════════════════════════════════════════════════════════
# P4: two hanging nodes, one on the longest side
# ═══════════════════════════════════════════════════════════════════

def check_p4(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P4Match]:
    sides = _sides(g, center)
    if sides is None or not _well_formed(sides) or _count_hanging(sides) != 2:
        return None
    k, _ = _longest(g, sides, distance)
    s = sides[k]
    if s.hanging is None:
        return None
    h2 = next(
        side.hanging for j, side in enumerate(sides)
        if j != k and side.hanging is not None
    )
    return P4Match(s.v1, s.v2, s.v3, s.hanging, h2)


def transform_p4(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Split at the hanging node on the longest side of a two-hanging triangle.

    ```text
         v                v
        / \\              /|\\
       h   \\     =>     h | \\
      /     \\          /  |  \\
     v---h---v        v---v---v
    ```
    """
    m = check_p4(g, center, strategy.distance)
    if m is None:
        return False
    _split_at(g, center, m.v1, m.v2, m.v3, m.h1)
    logger.debug("P4: interior %d split at promoted node %d", center, m.h1)
    return True


# ═══════════════════════════════════════════════════════════════════
# P5: two hanging nodes, neither on the longest side
# ═══════════════════════════════════════════════════════════════════

def check_p5(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P5Match]:
    sides = _sides(g, center)
    if sides is None or not _well_formed(sides) or _count_hanging(sides) != 2:
        return None
    k, _ = _longest(g, sides, distance)
    s = sides[k]
    if s.hanging is not None:
        return None
    if not _breakable(g, s):
        return None
    h1, h2 = (side.hanging for side in sides if side.hanging is not None)
    return P5Match(s.v1, s.v2, s.v3, h1, h2)


def transform_p5(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Break the longest side of a triangle whose hanging nodes lie elsewhere.

    ```text
         v                v
        / \\              /|\\
       h   h     =>     h | h
      /     \\          /  |  \\
     v-------v        v---h---v
    ```
    """
    m = check_p5(g, center, strategy.distance)
    if m is None:
        return False
    n = _bisect(g, center, m.v1, m.v2, m.v3, strategy)
    logger.debug("P5: interior %d bisected at new node %d", center, n)
    return True


# ═══════════════════════════════════════════════════════════════════
# P6: three hanging nodes
# ═══════════════════════════════════════════════════════════════════

def check_p6(g: "MeshGraph", center: int, distance: "DistanceFn") -> Optional[P6Match]:
    sides = _sides(g, center)
    if sides is None or any(s.hanging is None for s in sides):
        return None

    # split length through the hanging node picks the candidate side
    split = [
        distance(g, s.v1, s.hanging) + distance(g, s.v2, s.hanging)
        for s in sides
    ]
    k = split.index(max(split))
    s1, s2, s3 = sides[k], sides[(k + 1) % 3], sides[(k + 2) % 3]
    v1, v2, v3 = s1.v1, s1.v2, s1.v3

    # the candidate must also be longest between true corners
    l12 = distance(g, v1, v2)
    l23 = distance(g, v2, v3)
    l31 = distance(g, v3, v1)
    if l12 >= l23 and l12 >= l31:
        return P6Match(v1, v2, v3, s1.hanging, s2.hanging, s3.hanging)
    return None


def transform_p6(g: "MeshGraph", center: int, strategy: "RefinementStrategy") -> bool:
    """Split a triangle with three hanging nodes at its longest side.

    ```text
         v                v
        / \\              /|\\
       h   h     =>     h | h
      /     \\          /  |  \\
     v---h---v        v---v---v
    ```
    """
    m = check_p6(g, center, strategy.distance)
    if m is None:
        return False
    _split_at(g, center, m.v1, m.v2, m.v3, m.h1)
    logger.debug("P6: interior %d split at promoted node %d", center, m.h1)
    return True


PRODUCTIONS: Dict[str, TransformFn] = {
    "P1": transform_p1,
    "P2": transform_p2,
    "P3": transform_p3,
    "P4": transform_p4,
    "P5": transform_p5,
    "P6": transform_p6,
}
