from __future__ import annotations

from enum import Enum


class NodeType(Enum):
    """Kind of a node in a :class:`~meshgraph.meshgraph.MeshGraph`.

    * ``VERTEX`` — a true mesh vertex with a position and a scalar value.
    * ``INTERIOR`` — one triangle; linked to its three corners.
    * ``HANGING`` — a vertex sitting on an edge between two parents,
      waiting to be promoted by a production.
    """

    VERTEX = "vertex"
    INTERIOR = "interior"
    HANGING = "hanging"


class MeshInvariantError(RuntimeError):
    """The property store contradicts the mesh topology.

    Raised for programmer errors such as a hanging node that lost its
    between-vertices; never used to signal that a production does not apply.
    """
