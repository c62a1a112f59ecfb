"""
Leak Inspector
==============

Structural analysis of the live shared cells using graph topology.

FENCE POST:
===========
This inspector REPORTS leaks. It never repairs them.

ALLOWED:
- Graph construction over live cells and the handles their payloads hold
- Cycle detection
- Reachability from handles held outside the heap

FORBIDDEN:
- Releasing, cloning or borrowing anything
- Breaking cycles (there is no collector)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple
import networkx as nx

from ..core.drop import iter_owned
from ..core.rc import Rc
from . import ObservabilityEngine, get_engine


@dataclass(frozen=True)
class LeakReport:
    """Immutable result of one inspection."""
    live_cells: Tuple[str, ...]
    strong_counts: Tuple[Tuple[str, int], ...]
    external_counts: Tuple[Tuple[str, int], ...]
    cycles: Tuple[Tuple[str, ...], ...] = field(default_factory=tuple)
    leaked: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def has_leaks(self) -> bool:
        return bool(self.leaked)


def _held_handles(value: object) -> Iterator[Rc]:
    """Rc handles reachable from `value` without passing through another Rc."""
    stack = [value]
    visited: Set[int] = set()
    while stack:
        current = stack.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))

        if isinstance(current, Rc):
            if not current.is_released:
                yield current
            continue

        stack.extend(reversed(list(iter_owned(current))))


class LeakInspector:
    """
    Inspector over the engine's heap registry.

    Wraps NetworkX: nodes are live cells, an edge u -> v with weight n means
    u's payload holds n handles on v.
    """

    def __init__(self, engine: Optional[ObservabilityEngine] = None):
        self._engine = engine or get_engine()
        self._graph = nx.DiGraph()

    def build_graph(self) -> nx.DiGraph:
        """Rebuild the graph from the current heap. Replaces internal state."""
        self._graph = nx.DiGraph()
        heap = self._engine.heap
        if heap is None:
            return self._graph

        live = heap.live()
        for cell_id, cell in live:
            self._graph.add_node(cell_id, strong_count=cell.strong_count)

        for cell_id, cell in live:
            for handle in _held_handles(cell.value):
                target = handle.cell.cell_id
                if self._graph.has_edge(cell_id, target):
                    self._graph[cell_id][target]["handles"] += 1
                else:
                    self._graph.add_edge(cell_id, target, handles=1)

        return self._graph

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    def find_cycles(self) -> List[Tuple[str, ...]]:
        """
        Strong-reference cycles among live cells.

        Each cycle is rotated to start at its earliest-registered cell, and
        cycles are listed in that order.
        """
        order = {node: index for index, node in enumerate(self._graph.nodes)}
        cycles = []
        for cycle in nx.simple_cycles(self._graph):
            start = min(range(len(cycle)), key=lambda i: order[cycle[i]])
            cycles.append(tuple(cycle[start:] + cycle[:start]))
        cycles.sort(key=lambda c: [order[n] for n in c])
        return cycles

    def external_counts(self) -> Dict[str, int]:
        """Handles on each cell held from outside the heap."""
        counts = {}
        for node, data in self._graph.nodes(data=True):
            internal = sum(
                edge["handles"] for _, _, edge in self._graph.in_edges(node, data=True)
            )
            counts[node] = data["strong_count"] - internal
        return counts

    def leaked_cells(self) -> List[str]:
        """
        Cells nothing outside the heap can reach.

        Their counts are above zero only because other unreachable cells hold
        them: the cycle-leak signature.
        """
        roots = [node for node, count in self.external_counts().items() if count > 0]
        reachable: Set[str] = set(roots)
        for root in roots:
            reachable.update(nx.descendants(self._graph, root))
        return [node for node in self._graph.nodes if node not in reachable]

    def inspect(self) -> LeakReport:
        """Build the graph and report on it."""
        self.build_graph()
        external = self.external_counts()
        return LeakReport(
            live_cells=tuple(self._graph.nodes),
            strong_counts=tuple(
                (node, data["strong_count"]) for node, data in self._graph.nodes(data=True)
            ),
            external_counts=tuple(external.items()),
            cycles=tuple(self.find_cycles()),
            leaked=tuple(self.leaked_cells()),
        )
