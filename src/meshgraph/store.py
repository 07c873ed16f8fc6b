"""Attributed graph store — undirected graph with per-node and per-edge properties.

Nodes are addressed by integer ids that stay stable for the lifetime of the
store: ids start at 1, grow monotonically and are never reused after a node
is removed.  Edges are addressed by an unordered pair of node ids.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple, Union

EdgeKey = Tuple[int, int]
Key = Union[int, EdgeKey]

_MISSING = object()


def edge_key(u: int, v: int) -> EdgeKey:
    """Canonical key for the undirected edge ``{u, v}``."""
    return (u, v) if u <= v else (v, u)


class AttributedGraph:
    """Dict-backed undirected graph with O(1) property lookup."""

    def __init__(self) -> None:
        self._adjacency: Dict[int, Dict[int, None]] = {}
        self._node_props: Dict[int, Dict[str, Any]] = {}
        self._edge_props: Dict[EdgeKey, Dict[str, Any]] = {}
        self._next_id = 1

    # ── Nodes ───────────────────────────────────────────────────────

    def add_vertex(self) -> int:
        vid = self._next_id
        self._next_id += 1
        self._adjacency[vid] = {}
        self._node_props[vid] = {}
        return vid

    def remove_vertex(self, v: int) -> None:
        """Remove node *v* together with all incident edges."""
        self._require_vertex(v)
        for u in list(self._adjacency[v]):
            self.remove_edge(v, u)
        del self._adjacency[v]
        del self._node_props[v]

    def has_vertex(self, v: int) -> bool:
        return v in self._adjacency

    def vertices(self) -> List[int]:
        return sorted(self._adjacency)

    def nv(self) -> int:
        return len(self._adjacency)

    @property
    def next_id(self) -> int:
        """Id that the next :meth:`add_vertex` call will return."""
        return self._next_id

    def reserve_ids(self, next_id: int) -> None:
        """Make sure no id below *next_id* is handed out again."""
        self._next_id = max(self._next_id, next_id)

    def add_vertex_with_id(self, vid: int) -> int:
        """Insert a node under an explicit id (used when deserialising)."""
        if vid in self._adjacency:
            raise ValueError(f"Vertex {vid} already exists")
        if vid < 1:
            raise ValueError(f"Vertex ids start at 1, got {vid}")
        self._adjacency[vid] = {}
        self._node_props[vid] = {}
        self.reserve_ids(vid + 1)
        return vid

    # ── Edges ───────────────────────────────────────────────────────

    def add_edge(self, u: int, v: int) -> bool:
        """Add the undirected edge ``{u, v}``.

        Returns *False* if the edge already existed.
        """
        self._require_vertex(u)
        self._require_vertex(v)
        if u == v:
            raise ValueError(f"Self loops are not allowed (vertex {u})")
        if v in self._adjacency[u]:
            return False
        self._adjacency[u][v] = None
        self._adjacency[v][u] = None
        self._edge_props[edge_key(u, v)] = {}
        return True

    def remove_edge(self, u: int, v: int) -> bool:
        if not self.has_edge(u, v):
            return False
        del self._adjacency[u][v]
        del self._adjacency[v][u]
        del self._edge_props[edge_key(u, v)]
        return True

    def has_edge(self, u: int, v: int) -> bool:
        return u in self._adjacency and v in self._adjacency[u]

    def edges(self) -> List[EdgeKey]:
        return sorted(self._edge_props)

    def ne(self) -> int:
        return len(self._edge_props)

    def neighbors(self, v: int) -> List[int]:
        """Neighbours of *v* in the order their edges were added."""
        self._require_vertex(v)
        return list(self._adjacency[v])

    # ── Properties ──────────────────────────────────────────────────

    def get_property(self, key: Key, name: str, default: Any = _MISSING) -> Any:
        """Return property *name* of a node or edge.

        Raises ``KeyError`` when the property is missing and no *default*
        was given.
        """
        props = self._props(key)
        if name in props:
            return props[name]
        if default is _MISSING:
            raise KeyError(f"{key!r} has no property {name!r}")
        return default

    def set_property(self, key: Key, name: str, value: Any) -> None:
        self._props(key)[name] = value

    def has_property(self, key: Key, name: str) -> bool:
        return name in self._props(key)

    def remove_property(self, key: Key, name: str) -> None:
        self._props(key).pop(name, None)

    def properties(self, key: Key) -> Dict[str, Any]:
        """Shallow copy of all properties of a node or edge."""
        return dict(self._props(key))

    def __iter__(self) -> Iterator[int]:
        return iter(self.vertices())

    def __len__(self) -> int:
        return self.nv()

    # ── Internals ───────────────────────────────────────────────────

    def _props(self, key: Key) -> Dict[str, Any]:
        if isinstance(key, tuple):
            ek = edge_key(*key)
            if ek not in self._edge_props:
                raise KeyError(f"No edge between {ek[0]} and {ek[1]}")
            return self._edge_props[ek]
        self._require_vertex(key)
        return self._node_props[key]

    def _require_vertex(self, v: int) -> None:
        if v not in self._adjacency:
            raise KeyError(f"No vertex with id {v!r}")
