"""
Drawing causal graphs to image files.

Uses networkx for layout and matplotlib (non-interactive Agg backend) for
rendering, so it works headless.
"""
from __future__ import annotations

import logging
import os

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import networkx as nx  # noqa: E402

from ._exceptions import GraphError  # noqa: E402
from .dag import DAG  # noqa: E402

logger = logging.getLogger(__name__)

_LAYOUT_SEED = 7


def _nicely(graph: nx.DiGraph) -> dict:
    # Small graphs: one row per topological generation.
    if graph.number_of_nodes() <= 8:
        for layer, nodes in enumerate(nx.topological_generations(graph)):
            for node in nodes:
                graph.nodes[node]["layer"] = layer
        return nx.multipartite_layout(graph, subset_key="layer", align="horizontal")
    return nx.spring_layout(graph, seed=_LAYOUT_SEED)


LAYOUTS = {
    "nicely": _nicely,
    "circular": nx.circular_layout,
    "shell": nx.shell_layout,
    "spring": lambda g: nx.spring_layout(g, seed=_LAYOUT_SEED),
}


def render_dag(
    dag: DAG,
    path: str | os.PathLike,
    layout: str = "nicely",
    title: str | None = None,
    node_color: str = "lightblue",
) -> str:
    """
    Draw ``dag`` and save it as an image at ``path``.

    Parameters
    ----------
    dag : DAG
        Graph to draw. Must have at least one edge.
    path : str or PathLike
        Output file. The format follows the extension (PNG is typical).
        Parent directories are created as needed.
    layout : {"nicely", "circular", "shell", "spring"}
        Node placement. ``"nicely"`` lays small graphs out in rows by causal order.
    title : str, optional
        Figure title.

    Returns
    -------
    str
        The path written.

    Raises
    ------
    ``ValueError``
        If ``layout`` is unknown.
    GraphError
        If the graph has no edges.
    """
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout '{layout}'. Choose from {sorted(LAYOUTS)}.")
    if not dag.edges:
        raise GraphError("Cannot render an empty DAG.")

    path = os.fspath(path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    graph = dag.to_networkx()
    pos = LAYOUTS[layout](graph)

    fig, ax = plt.subplots(figsize=(6, 4.5))
    try:
        nx.draw_networkx(
            graph, pos, ax=ax,
            node_color=node_color, node_size=1200, font_size=12,
            arrows=True, arrowsize=18, edgecolors="black",
        )
        ax.set_axis_off()
        if title:
            ax.set_title(title)
        fig.savefig(path, bbox_inches="tight", dpi=150)
    finally:
        plt.close(fig)

    logger.debug("Rendered DAG with %d edges to %s (%s layout)", len(dag.edges), path, layout)
    return path
