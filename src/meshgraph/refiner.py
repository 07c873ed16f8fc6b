"""Refinement driver — applies productions until the mesh is conforming again.

Usage
-----
>>> from meshgraph.builders import build_rectangle_mesh
>>> from meshgraph.refiner import mark_for_refinement, refine
>>> g = build_rectangle_mesh(2, 2)
>>> mark_for_refinement(g, lambda g, i: True)
8
>>> report = refine(g)

A sweep visits a snapshot of the interiors and applies the first
production (P1 … P6) that fires on each.  Triangles created during a
sweep are visited by the next one.  Refinement ends after the first sweep
in which nothing fired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Optional

from .productions import PRODUCTIONS
from .strategies import RefinementStrategy

if TYPE_CHECKING:
    from .meshgraph import MeshGraph

logger = logging.getLogger(__name__)

InteriorPredicate = Callable[["MeshGraph", int], bool]


# ═══════════════════════════════════════════════════════════════════
# Configuration / results
# ═══════════════════════════════════════════════════════════════════

@dataclass
class RefinementConfig:
    """Parameters of a refinement run.

    Attributes
    ----------
    use_uv : bool
        Measure edges in 2-D (planar or geographic) coordinates instead of
        3-D Cartesian ones.
    max_iterations : int
        Maximum number of sweeps before giving up.
    """

    use_uv: bool = False
    max_iterations: int = 1000

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")


@dataclass
class RefinementReport:
    """What a refinement run did.

    Attributes
    ----------
    sweeps : int
        Number of sweeps over the interiors, including the final idle one.
    applied : dict[str, int]
        Number of applications per production name.
    """

    sweeps: int = 0
    applied: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.applied.values())

    def merge(self, other: "RefinementReport") -> None:
        self.sweeps += other.sweeps
        for name, count in other.applied.items():
            self.applied[name] = self.applied.get(name, 0) + count


# ═══════════════════════════════════════════════════════════════════
# Sweeps
# ═══════════════════════════════════════════════════════════════════

def apply_productions(
    g: "MeshGraph",
    center: int,
    strategy: RefinementStrategy,
) -> Optional[str]:
    """Apply the first production that fires on *center*; return its name."""
    for name, transform in PRODUCTIONS.items():
        if transform(g, center, strategy):
            return name
    return None


def run_transformations(
    g: "MeshGraph",
    strategy: RefinementStrategy,
    report: Optional[RefinementReport] = None,
) -> int:
    """One sweep over the current interiors; returns the number of applications."""
    applied = 0
    for center in g.interiors():
        if not g.is_interior(center):
            continue
        name = apply_productions(g, center, strategy)
        if name is None:
            continue
        applied += 1
        if report is not None:
            report.applied[name] = report.applied.get(name, 0) + 1
    return applied


def refine(
    g: "MeshGraph",
    config: Optional[RefinementConfig] = None,
    strategy: Optional[RefinementStrategy] = None,
) -> RefinementReport:
    """Sweep until no production fires.

    Raises ``RuntimeError`` if ``config.max_iterations`` sweeps do not
    settle the mesh.
    """
    config = config or RefinementConfig()
    strategy = strategy or RefinementStrategy.for_graph(g, use_uv=config.use_uv)
    report = RefinementReport()

    for _ in range(config.max_iterations):
        report.sweeps += 1
        applied = run_transformations(g, strategy, report)
        logger.debug("sweep %d applied %d productions", report.sweeps, applied)
        if applied == 0:
            logger.info(
                "refinement finished after %d sweeps: %d productions, %r",
                report.sweeps, report.total, g,
            )
            if g.hanging_count:
                logger.warning("%d hanging nodes left unresolved", g.hanging_count)
            return report

    raise RuntimeError(
        f"Refinement did not settle within {config.max_iterations} sweeps"
    )


# ═══════════════════════════════════════════════════════════════════
# Marking
# ═══════════════════════════════════════════════════════════════════

def mark_for_refinement(g: "MeshGraph", predicate: InteriorPredicate) -> int:
    """Set the ``refine`` flag on every interior satisfying *predicate*."""
    marked = 0
    for i in g.interiors():
        if predicate(g, i):
            g.set_refine(i)
            marked += 1
    return marked


def longest_side(g: "MeshGraph", i: int, strategy: RefinementStrategy) -> float:
    """Length of the longest side of interior *i* measured between its corners."""
    a, b, c = g.interiors_vertices(i)
    return max(
        strategy.distance(g, a, b),
        strategy.distance(g, b, c),
        strategy.distance(g, c, a),
    )


def mark_longer_than(
    g: "MeshGraph",
    max_length: float,
    strategy: RefinementStrategy,
) -> int:
    """Mark every interior whose longest side exceeds *max_length*."""
    return mark_for_refinement(
        g, lambda graph, i: longest_side(graph, i, strategy) > max_length
    )


def refine_to_size(
    g: "MeshGraph",
    max_length: float,
    config: Optional[RefinementConfig] = None,
) -> RefinementReport:
    """Refine until no triangle side is longer than *max_length*."""
    if max_length <= 0:
        raise ValueError("max_length must be > 0")
    config = config or RefinementConfig()
    strategy = RefinementStrategy.for_graph(g, use_uv=config.use_uv)
    report = RefinementReport()

    for _ in range(config.max_iterations):
        marked = mark_longer_than(g, max_length, strategy)
        if marked == 0:
            return report
        logger.info("marked %d interiors longer than %g", marked, max_length)
        report.merge(refine(g, config, strategy))

    raise RuntimeError(
        f"Mesh did not reach edge length {max_length} within "
        f"{config.max_iterations} rounds"
    )
