from __future__ import annotations

from pathlib import Path

from .meshgraph import MeshGraph


def render_png(
    g: MeshGraph,
    output_path: str | Path,
    face_alpha: float = 0.15,
    edge_color: str = "#2b2b2b",
    face_color: str = "#5aa9e6",
    vertex_color: str = "#2b2b2b",
    hanging_color: str = "#d1495b",
    vertex_size: float = 8.0,
    dpi: int = 150,
) -> None:
    """Render the triangles of *g* in ``coords2D`` to a PNG.

    Hanging nodes are drawn in *hanging_color*.  On a SphereGraph the
    plot is an equirectangular ``(lon, lat)`` map.

    Requires matplotlib; imported lazily to keep core package lightweight.
    """
    try:
        import matplotlib.pyplot as plt
        from matplotlib.patches import Polygon
    except ImportError as exc:  # pragma: no cover - requires optional dep
        raise RuntimeError(
            "matplotlib is required for rendering. Install with `pip install matplotlib`."
        ) from exc

    if g.nv() == 0:
        raise ValueError("Cannot render an empty mesh graph.")

    fig, ax = plt.subplots()

    for i in g.interiors():
        points = [_plot_xy(g, v) for v in g.interiors_vertices(i)]
        ax.add_patch(Polygon(points, closed=True, facecolor=face_color, alpha=face_alpha))

    for u, v in g.edges():
        (x0, y0), (x1, y1) = _plot_xy(g, u), _plot_xy(g, v)
        ax.plot([x0, x1], [y0, y1], color=edge_color, linewidth=1.0)

    for v in g.normal_vertices():
        x, y = _plot_xy(g, v)
        color = hanging_color if g.is_hanging(v) else vertex_color
        ax.scatter(x, y, s=vertex_size, c=color, zorder=3)

    ax.set_aspect("equal", "datalim")
    ax.axis("off")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", pad_inches=0)
    plt.close(fig)


def _plot_xy(g: MeshGraph, v: int) -> tuple[float, float]:
    a, b = g.coords2D(v)
    if g.KIND == "sphere":
        # (lat, lon) -> (lon, lat) for a map-like layout
        return float(b), float(a)
    return float(a), float(b)
