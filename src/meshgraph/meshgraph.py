"""MeshGraph — topological + geometric graph of a triangular mesh.

A mesh graph stores three kinds of nodes in one attributed graph (see
:class:`~meshgraph.models.NodeType`):

* vertices, carrying Cartesian ``xyz`` and a scalar ``value``
* interiors, one per triangle, linked by graph edges to their corners
* hanging nodes, vertices created on an edge and remembering the two
  vertices (``v1``, ``v2``) they sit between

Mesh edges join vertices and hanging nodes and carry a ``boundary`` flag.
Interior nodes carry a ``refine`` flag used by production P1.

The geometry is variant-specific: :class:`~meshgraph.flatgraph.FlatGraph`
keeps a flat plane, :class:`~meshgraph.spheregraph.SphereGraph` a sphere
with geographic coordinates.  Both implement the abstract capability set
``add_vertex``, ``get_elevation``, ``set_elevation``, ``coords2D``,
``get_value_cartesian`` and ``scale_graph``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from .models import MeshInvariantError, NodeType
from .store import AttributedGraph


class MeshGraph(ABC):
    """Shared vertex / edge / interior bookkeeping of both mesh variants.

    The counters ``vertex_count``, ``interior_count`` and ``hanging_count``
    always equal the number of live nodes of each kind.
    """

    VERSION = "1.0"
    KIND: ClassVar[str] = ""
    _ARRAY_PROPS: ClassVar[Tuple[str, ...]] = ("xyz",)
    _registry: ClassVar[Dict[str, Type["MeshGraph"]]] = {}

    def __init__(self) -> None:
        self.graph = AttributedGraph()
        self.vertex_count = 0
        self.interior_count = 0
        self.hanging_count = 0

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.KIND:
            MeshGraph._registry[cls.KIND] = cls

    # ── Variant capabilities ────────────────────────────────────────

    @abstractmethod
    def add_vertex(
        self,
        coords: Sequence[float],
        elevation: Optional[float] = None,
        *,
        value: float = 0.0,
    ) -> int:
        """Add a vertex and return its id."""

    @abstractmethod
    def get_elevation(self, v: int) -> float:
        ...

    @abstractmethod
    def set_elevation(self, v: int, elevation: float) -> None:
        ...

    @abstractmethod
    def coords2D(self, v: int) -> np.ndarray:
        """2-D position used by planar / geographic distance helpers."""

    @abstractmethod
    def get_value_cartesian(self, v: int) -> np.ndarray:
        """Cartesian point of *v* displaced "up" by its ``value``."""

    @abstractmethod
    def scale_graph(self, scale: float) -> None:
        """Scale coordinates of every normal vertex by *scale*."""

    # ── Node queries ────────────────────────────────────────────────

    def nv(self) -> int:
        """Number of nodes of every kind."""
        return self.graph.nv()

    def vertices(self) -> List[int]:
        return self.graph.vertices()

    def node_type(self, v: int) -> NodeType:
        return self.graph.get_property(v, "type")

    def is_vertex(self, v: int) -> bool:
        return self.graph.has_vertex(v) and self.node_type(v) is NodeType.VERTEX

    def is_interior(self, v: int) -> bool:
        return self.graph.has_vertex(v) and self.node_type(v) is NodeType.INTERIOR

    def is_hanging(self, v: int) -> bool:
        return self.graph.has_vertex(v) and self.node_type(v) is NodeType.HANGING

    def normal_vertices(self) -> List[int]:
        """Every node that is not an interior: vertices and hanging nodes."""
        return [v for v in self.graph.vertices() if not self.is_interior(v)]

    def interiors(self) -> List[int]:
        return [v for v in self.graph.vertices() if self.is_interior(v)]

    def hanging_nodes(self) -> List[int]:
        return [v for v in self.graph.vertices() if self.is_hanging(v)]

    def neighbors(self, v: int) -> List[int]:
        """Mesh neighbours of *v*, i.e. adjacent nodes that are not interiors."""
        return [u for u in self.graph.neighbors(v) if not self.is_interior(u)]

    def vertex_interiors(self, v: int) -> List[int]:
        """Interiors (triangles) having *v* as a corner."""
        return [u for u in self.graph.neighbors(v) if self.is_interior(u)]

    def interiors_vertices(self, i: int) -> List[int]:
        """The three corners of interior *i* in the order they were given."""
        if not self.is_interior(i):
            raise ValueError(f"Node {i} is not an interior")
        return self.graph.neighbors(i)

    # ── Vertex properties ───────────────────────────────────────────

    def xyz(self, v: int) -> np.ndarray:
        """Copy of the Cartesian coordinates of *v*."""
        return np.array(self.graph.get_property(v, "xyz"), dtype=float)

    def get_value(self, v: int) -> float:
        return self.graph.get_property(v, "value")

    def set_value(self, v: int, value: float) -> None:
        self.graph.set_property(v, "value", float(value))

    # ── Edges ───────────────────────────────────────────────────────

    def add_edge(self, v1: int, v2: int, boundary: bool = False) -> None:
        """Add mesh edge ``v1``–``v2`` (or update its *boundary* flag)."""
        for v in (v1, v2):
            if self.is_interior(v):
                raise ValueError(f"Interior {v} cannot be an endpoint of a mesh edge")
        self.graph.add_edge(v1, v2)
        self.graph.set_property((v1, v2), "boundary", bool(boundary))

    def rem_edge(self, v1: int, v2: int) -> bool:
        return self.graph.remove_edge(v1, v2)

    def has_edge(self, v1: int, v2: int) -> bool:
        if self.is_interior(v1) or self.is_interior(v2):
            return False
        return self.graph.has_edge(v1, v2)

    def edges(self) -> List[Tuple[int, int]]:
        """Mesh edges, excluding the links between interiors and corners."""
        return [
            (u, v) for u, v in self.graph.edges()
            if not self.is_interior(u) and not self.is_interior(v)
        ]

    def is_on_boundary(self, v1: int, v2: int) -> bool:
        return bool(self.graph.get_property((v1, v2), "boundary", False))

    def set_boundary(self, v1: int, v2: int, value: bool = True) -> None:
        self.graph.set_property((v1, v2), "boundary", bool(value))

    # ── Interiors ───────────────────────────────────────────────────

    def add_interior(self, v1: int, v2: int, v3: int, refine: bool = False) -> int:
        """Add a triangle with corners *v1*, *v2*, *v3* and return its id."""
        corners = (v1, v2, v3)
        if len(set(corners)) != 3:
            raise ValueError(f"Interior corners must be distinct, got {corners}")
        for v in corners:
            if not self.graph.has_vertex(v):
                raise KeyError(f"No vertex with id {v!r}")
            if self.is_interior(v):
                raise ValueError(f"Interior {v} cannot be a corner of another interior")

        i = self.graph.add_vertex()
        self.graph.set_property(i, "type", NodeType.INTERIOR)
        self.graph.set_property(i, "refine", bool(refine))
        for v in corners:
            self.graph.add_edge(i, v)
        self.interior_count += 1
        return i

    def should_refine(self, i: int) -> bool:
        return bool(self.graph.get_property(i, "refine", False))

    def set_refine(self, i: int) -> None:
        if not self.is_interior(i):
            raise ValueError(f"Node {i} is not an interior")
        self.graph.set_property(i, "refine", True)

    def unset_refine(self, i: int) -> None:
        if not self.is_interior(i):
            raise ValueError(f"Node {i} is not an interior")
        self.graph.set_property(i, "refine", False)

    # ── Removal ─────────────────────────────────────────────────────

    def rem_vertex(self, v: int) -> None:
        """Remove node *v* of any kind together with its edges."""
        kind = self.node_type(v)
        self.graph.remove_vertex(v)
        if kind is NodeType.VERTEX:
            self.vertex_count -= 1
        elif kind is NodeType.INTERIOR:
            self.interior_count -= 1
        else:
            self.hanging_count -= 1

    # ── Hanging nodes ───────────────────────────────────────────────

    def add_hanging(
        self,
        v1: int,
        v2: int,
        coords: Sequence[float],
        elevation: Optional[float] = None,
        *,
        value: float = 0.0,
    ) -> int:
        """Add a hanging node between *v1* and *v2* and return its id."""
        h = self.add_vertex(coords, elevation, value=value)
        self.set_hanging(h, v1, v2)
        return h

    def set_hanging(self, h: int, v1: int, v2: int) -> None:
        """Mark vertex *h* as hanging between *v1* and *v2*."""
        if self.is_interior(h):
            raise ValueError(f"Interior {h} cannot be a hanging node")
        if v1 == v2 or h in (v1, v2):
            raise ValueError(f"Hanging node {h} needs two other distinct parents")
        if self.node_type(h) is NodeType.VERTEX:
            self.vertex_count -= 1
            self.hanging_count += 1
        self.graph.set_property(h, "type", NodeType.HANGING)
        self.graph.set_property(h, "v1", v1)
        self.graph.set_property(h, "v2", v2)

    def unset_hanging(self, h: int) -> None:
        """Promote hanging node *h* to a regular vertex."""
        if not self.is_hanging(h):
            raise ValueError(f"Node {h} is not a hanging node")
        self.graph.set_property(h, "type", NodeType.VERTEX)
        self.graph.remove_property(h, "v1")
        self.graph.remove_property(h, "v2")
        self.hanging_count -= 1
        self.vertex_count += 1

    def hanging_between(self, h: int) -> Tuple[int, int]:
        """The two vertices hanging node *h* sits between."""
        if not self.is_hanging(h):
            raise ValueError(f"Node {h} is not a hanging node")
        v1 = self.graph.get_property(h, "v1", None)
        v2 = self.graph.get_property(h, "v2", None)
        if v1 is None or v2 is None:
            raise MeshInvariantError(f"Hanging node {h} has no between-vertices")
        return v1, v2

    def get_hanging_node_between(self, v1: int, v2: int) -> Optional[int]:
        """Return the hanging node on the (broken) edge *v1*–*v2*, if any."""
        if self.has_edge(v1, v2):
            return None
        common = set(self.neighbors(v2))
        for h in self.neighbors(v1):
            if h in common and self.is_hanging(h):
                if set(self.hanging_between(h)) == {v1, v2}:
                    return h
        return None

    # ── Internals shared by the variants ────────────────────────────

    def _new_vertex(self, value: float) -> int:
        v = self.graph.add_vertex()
        self.graph.set_property(v, "type", NodeType.VERTEX)
        self.graph.set_property(v, "value", float(value))
        return v

    def _coordinate_errors(self, v: int) -> List[str]:
        return []

    def _joined(self, v1: int, v2: int) -> bool:
        """Edge or hanging node between *v1* and *v2*, without raising on bad metadata."""
        if self.graph.has_edge(v1, v2):
            return True
        common = set(self.graph.neighbors(v2))
        for h in self.graph.neighbors(v1):
            if h in common and self.is_hanging(h):
                parents = {
                    self.graph.get_property(h, "v1", None),
                    self.graph.get_property(h, "v2", None),
                }
                if parents == {v1, v2}:
                    return True
        return False

    # ── Validation ──────────────────────────────────────────────────

    def validate(self) -> list[str]:
        """Return a list of violated mesh invariants (empty when consistent)."""
        errors: list[str] = []

        counts = {kind: 0 for kind in NodeType}
        for v in self.graph.vertices():
            counts[self.node_type(v)] += 1
        for kind, attr in (
            (NodeType.VERTEX, "vertex_count"),
            (NodeType.INTERIOR, "interior_count"),
            (NodeType.HANGING, "hanging_count"),
        ):
            if counts[kind] != getattr(self, attr):
                errors.append(
                    f"{attr} is {getattr(self, attr)} but graph has {counts[kind]} {kind.value} nodes"
                )

        for v in self.graph.vertices():
            kind = self.node_type(v)
            if kind is NodeType.INTERIOR:
                corners = self.graph.neighbors(v)
                if len(corners) != 3:
                    errors.append(f"Interior {v} has {len(corners)} corners")
                if any(self.is_interior(c) for c in corners):
                    errors.append(f"Interior {v} is linked to another interior")
                elif len(corners) == 3:
                    a, b, c = corners
                    for u, w in ((a, b), (b, c), (c, a)):
                        if not self._joined(u, w):
                            errors.append(f"Interior {v} has no side {u}-{w}")
                continue

            xyz = self.graph.get_property(v, "xyz", None)
            if xyz is None or len(xyz) != 3:
                errors.append(f"Vertex {v} has no 3-D coordinates")
            errors.extend(self._coordinate_errors(v))

            if kind is NodeType.HANGING:
                v1 = self.graph.get_property(v, "v1", None)
                v2 = self.graph.get_property(v, "v2", None)
                if v1 is None or v2 is None:
                    errors.append(f"Hanging node {v} has no between-vertices")
                    continue
                for parent in (v1, v2):
                    if not self.has_edge(v, parent):
                        errors.append(f"Hanging node {v} is not connected to parent {parent}")
                if self.has_edge(v1, v2):
                    errors.append(f"Hanging node {v} sits on unbroken edge {v1}-{v2}")

        return errors

    # ── Serialisation ───────────────────────────────────────────────

    def _header(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def _empty(cls, payload: dict) -> "MeshGraph":
        return cls()

    def to_dict(self) -> dict:
        nodes = []
        for v in self.graph.vertices():
            props = self.graph.properties(v)
            kind = props.pop("type")
            node: Dict[str, Any] = {"id": v, "type": kind.value}
            if kind is NodeType.INTERIOR:
                node["vertices"] = self.graph.neighbors(v)
            for name, value in sorted(props.items()):
                if name in self._ARRAY_PROPS:
                    value = [float(c) for c in value]
                node[name] = value
            nodes.append(node)

        edges = [
            {"vertices": [u, v], "boundary": self.is_on_boundary(u, v)}
            for u, v in self.edges()
        ]

        data = {
            "version": self.VERSION,
            "kind": self.KIND,
            "next_id": self.graph.next_id,
            "nodes": nodes,
            "edges": edges,
        }
        data.update(self._header())
        return data

    @classmethod
    def from_dict(cls, payload: dict) -> "MeshGraph":
        """Rebuild a graph; on :class:`MeshGraph` itself the variant is read from *payload*."""
        target = cls
        kind = payload.get("kind")
        if not cls.KIND:
            if kind not in MeshGraph._registry:
                raise ValueError(f"Unknown mesh graph kind {kind!r}")
            target = MeshGraph._registry[kind]
        elif kind != cls.KIND:
            raise ValueError(f"Cannot load a {kind!r} mesh graph as {cls.__name__}")
        g = target._empty(payload)

        interiors = []
        for node in payload.get("nodes", []):
            kind = NodeType(node["type"])
            v = g.graph.add_vertex_with_id(int(node["id"]))
            g.graph.set_property(v, "type", kind)
            for name, value in node.items():
                if name in ("id", "type", "vertices"):
                    continue
                if name in target._ARRAY_PROPS:
                    value = np.array(value, dtype=float)
                g.graph.set_property(v, name, value)
            if kind is NodeType.INTERIOR:
                interiors.append((v, node["vertices"]))
                g.interior_count += 1
            elif kind is NodeType.HANGING:
                g.hanging_count += 1
            else:
                g.vertex_count += 1

        for i, corners in interiors:
            for c in corners:
                g.graph.add_edge(i, int(c))
        for edge in payload.get("edges", []):
            u, v = edge["vertices"]
            g.add_edge(int(u), int(v), boundary=edge.get("boundary", False))

        g.graph.reserve_ids(int(payload.get("next_id", 1)))
        return g

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @classmethod
    def from_json(cls, json_data: str) -> "MeshGraph":
        return cls.from_dict(json.loads(json_data))

    # ── Display ─────────────────────────────────────────────────────

    def _summary(self) -> str:
        return (
            f"({self.vertex_count} vertices), ({self.interior_count} interiors), "
            f"({self.hanging_count} hanging nodes) and ({len(self.edges())} edges)"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__} with {self._summary()}"
