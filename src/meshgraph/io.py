from __future__ import annotations

from pathlib import Path
from typing import Union

from .meshgraph import MeshGraph


PathLike = Union[str, Path]


def load_json(path: PathLike) -> MeshGraph:
    """Load a :class:`FlatGraph` or :class:`SphereGraph` saved by :func:`save_json`."""
    return MeshGraph.from_json(Path(path).read_text(encoding="utf-8"))


def save_json(g: MeshGraph, path: PathLike) -> None:
    Path(path).write_text(g.to_json(), encoding="utf-8")
