"""Directed rate graph built from exchange-pair quotes, with shortest-hop search."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set, Tuple

from cryptotrader.models import Tickers
from cryptotrader.utils.symbols import split_pair


@dataclass
class RateGraph:
    """Currencies as nodes; ``edges[a][b]`` means 1 unit of ``a`` is worth that many ``b``."""

    nodes: Set[str] = field(default_factory=set)
    edges: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def set_edge(self, start: str, end: str, rate: float) -> None:
        self.edges.setdefault(start, {})[end] = rate

    def rate(self, start: str, end: str) -> Optional[float]:
        return self.edges.get(start, {}).get(end)

    def neighbours(self, node: str) -> Mapping[str, float]:
        return self.edges.get(node, {})


@dataclass(frozen=True)
class ConversionPath:
    """Simple path between two currencies and the rate of each hop."""

    currencies: Tuple[str, ...]
    rates: Tuple[float, ...]

    @property
    def rate(self) -> float:
        total = 1.0
        for hop in self.rates:
            total *= hop
        return total

    @property
    def hops(self) -> int:
        return len(self.rates)

    def __str__(self) -> str:
        return " -> ".join(self.currencies)


def tickers_to_graph(tickers: Tickers) -> RateGraph:
    """Build a :class:`RateGraph` with an edge in each direction per pair.

    ``base -> quote`` gets ``1 / last`` and ``quote -> base`` gets ``last``.
    A pair seen twice overwrites the earlier edges.
    """

    graph = RateGraph()
    for currency_pair, ticker in tickers.items():
        base, quote = split_pair(currency_pair)
        graph.nodes.add(base)
        graph.nodes.add(quote)
        graph.set_edge(base, quote, 1 / ticker.last)
        graph.set_edge(quote, base, ticker.last)
    return graph


def find_path(graph: RateGraph, start: str, goal: str) -> Optional[ConversionPath]:
    """Breadth-first search for the fewest-hops path from ``start`` to ``goal``.

    Neighbours are visited in adjacency insertion order, so among equally
    short paths the first one discovered wins. Returns ``None`` when the
    currencies are not connected.
    """

    if start == goal:
        return ConversionPath(currencies=(start,), rates=())
    if start not in graph.nodes or goal not in graph.nodes:
        return None

    parents: Dict[str, Optional[str]] = {start: None}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for neighbour in graph.neighbours(node):
            if neighbour in parents:
                continue
            parents[neighbour] = node
            if neighbour == goal:
                return _walk_back(graph, parents, goal)
            queue.append(neighbour)
    return None


def _walk_back(graph: RateGraph, parents: Mapping[str, Optional[str]], goal: str) -> ConversionPath:
    currencies = [goal]
    while parents[currencies[-1]] is not None:
        currencies.append(parents[currencies[-1]])
    currencies.reverse()
    rates = tuple(graph.edges[a][b] for a, b in zip(currencies, currencies[1:]))
    return ConversionPath(currencies=tuple(currencies), rates=rates)


__all__ = ["RateGraph", "ConversionPath", "tickers_to_graph", "find_path"]
