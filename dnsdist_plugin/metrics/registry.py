from collections import OrderedDict
from typing import Dict, Iterable

from .base import GraphDefinition


class GraphRegistry:
    """Ordered, read-only-after-setup collection of graph definitions."""

    def __init__(self, graphs: Iterable[GraphDefinition] = ()) -> None:
        self._graphs: "OrderedDict[str, GraphDefinition]" = OrderedDict()
        for graph in graphs:
            self.register(graph)

    def register(self, graph: GraphDefinition) -> None:
        if graph.key in self._graphs:
            raise ValueError(f"Graph '{graph.key}' is already registered.")
        self._graphs[graph.key] = graph

    def all(self) -> Iterable[GraphDefinition]:
        return self._graphs.values()

    def render(self, prefix: str) -> Dict[str, GraphDefinition]:
        """Return the graphs keyed by graph key, labelled for ``prefix``."""
        return {key: graph.with_prefix(prefix) for key, graph in self._graphs.items()}
