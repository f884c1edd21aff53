from __future__ import annotations

from itertools import count
from typing import Iterable

import networkx as nx

from ._exceptions import GraphError


class _Assumption:
    """Returned by ``DAG.assume(node)``; ``causes()`` records the node's effects."""

    def __init__(self, dag: DAG, cause: str) -> None:
        self._dag = dag
        self._cause = cause

    def causes(self, *effects: str) -> _Assumption:
        for effect in effects:
            self._dag.add_edge(self._cause, effect)
        return self


class DAG:
    """
    Assumed causal relationships between named variables.

    A thin wrapper around a ``networkx.DiGraph`` that refuses self-loops,
    repeated edges and cycles. It only records parent → child links for
    drawing with ``counterfact.plotting.render_dag``; it does not search for
    adjustment sets.

    Example::

        dag = DAG()
        dag.assume("C").causes("X", "Y")
        dag.assume("X").causes("Y")

        # equivalently
        dag = DAG.from_edges([("C", "X"), ("C", "Y"), ("X", "Y")])
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()
        self._order = count()

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str]]) -> DAG:
        dag = cls()
        for cause, effect in edges:
            dag.add_edge(cause, effect)
        return dag

    def assume(self, node: str) -> _Assumption:
        """Start a ``dag.assume(cause).causes(effect, ...)`` chain."""
        return _Assumption(self, node)

    def add_edge(self, cause: str, effect: str) -> None:
        """
        Record ``cause → effect``.

        Raises
        ------
        GraphError
            On a self-loop, an edge already present, or an edge that closes a
            directed cycle. The graph is left unchanged.
        """
        if cause == effect:
            raise GraphError(f"Self-loops are not allowed: '{cause}'")
        if self._graph.has_edge(cause, effect):
            raise GraphError(f"'{cause}' → '{effect}' already asserted")
        if effect in self._graph and cause in self._graph and nx.has_path(self._graph, effect, cause):
            path = nx.shortest_path(self._graph, effect, cause)
            raise GraphError(
                f"Asserting '{cause}' → '{effect}' would create a cycle "
                f"({' → '.join([cause] + path)}). Causal graphs must be acyclic (DAGs)."
            )
        self._graph.add_edge(cause, effect, order=next(self._order))

    @property
    def nodes(self) -> set[str]:
        return set(self._graph.nodes)

    @property
    def edges(self) -> list[tuple[str, str]]:
        """``(cause, effect)`` pairs in the order they were asserted."""
        ordered = sorted(self._graph.edges(data="order"), key=lambda e: e[2])
        return [(cause, effect) for cause, effect, _ in ordered]

    def parents(self, node: str) -> set[str]:
        return set(self._graph.predecessors(node)) if node in self._graph else set()

    def children(self, node: str) -> set[str]:
        return set(self._graph.successors(node)) if node in self._graph else set()

    def ancestors(self, node: str) -> set[str]:
        return nx.ancestors(self._graph, node) if node in self._graph else set()

    def descendants(self, node: str) -> set[str]:
        return nx.descendants(self._graph, node) if node in self._graph else set()

    def to_networkx(self) -> nx.DiGraph:
        """A copy of the underlying graph, safe to annotate or lay out."""
        graph = nx.DiGraph()
        graph.add_edges_from(self.edges)
        return graph

    def __len__(self) -> int:
        return self._graph.number_of_edges()

    def __repr__(self) -> str:
        if not len(self):
            return "DAG (empty)"
        return "\n".join(["DAG:"] + [f"  {cause} → {effect}" for cause, effect in self.edges])
