"""Rendering of graph definitions and values for mackerel-agent.

With ``MACKEREL_AGENT_PLUGIN_META=1`` the agent asks for graph metadata;
otherwise it expects one ``name<TAB>value<TAB>epoch`` line per metric.

Values are printed as fetched. Metrics flagged ``diff`` are cumulative counters
in dnsdist and no previous run is remembered here, so they are not turned into
per-minute deltas; a host that keeps history has to compute those itself.
"""

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Mapping, Optional, TextIO

from .metrics.base import GraphDefinition, MetricProvider
from .metrics.dnsdist import graph_definition

logger = logging.getLogger(__name__)

META_ENV = "MACKEREL_AGENT_PLUGIN_META"
META_HEADER = "# mackerel-agent-plugin"


class Plugin:
    """Binds a metric provider to the key prefix its output is published under."""

    def __init__(self, provider: MetricProvider, prefix: str) -> None:
        self.provider = provider
        self.prefix = prefix

    def metric_key_prefix(self) -> str:
        return self.prefix

    def graph_definition(self) -> Dict[str, GraphDefinition]:
        return graph_definition(self.prefix)

    def fetch_metrics(self) -> Dict[str, float]:
        return self.provider.collect()

    def meta(self) -> Dict[str, Any]:
        graphs: Dict[str, Any] = {}
        for key, graph in self.graph_definition().items():
            graphs[f"{self.prefix}.{key}"] = {
                "label": graph.label,
                "unit": graph.unit,
                "metrics": [
                    {"name": metric.name, "label": metric.label, "stacked": metric.stacked}
                    for metric in graph.metrics
                ],
            }
        return {"graphs": graphs}

    def output_definitions(self, out: TextIO) -> None:
        out.write(META_HEADER + "\n")
        out.write(json.dumps(self.meta()) + "\n")

    def output_values(
        self,
        values: Mapping[str, float],
        out: TextIO,
        now: Optional[int] = None,
    ) -> None:
        epoch = int(time.time()) if now is None else now
        for key, graph in self.graph_definition().items():
            for metric in graph.metrics:
                if metric.name not in values:
                    logger.debug("No value for %s", metric.name)
                    continue
                name = f"{self.prefix}.{key}.{metric.name}"
                out.write(f"{name}\t{values[metric.name]:f}\t{epoch}\n")

    def run(self, out: Optional[TextIO] = None) -> None:
        out = sys.stdout if out is None else out
        if os.environ.get(META_ENV, "") != "":
            self.output_definitions(out)
            return
        self.output_values(self.fetch_metrics(), out)
