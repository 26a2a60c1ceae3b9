import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Tuple


class StatsError(Exception):
    """Raised when the statistics endpoint cannot be queried or decoded."""


@dataclass(frozen=True)
class GraphMetric:
    """A single series inside a graph."""

    name: str
    label: str
    stacked: bool = False
    diff: bool = False  # host reports the delta since its previous run


@dataclass(frozen=True)
class GraphDefinition:
    """Declarative definition of a group of metrics rendered together."""

    key: str
    label: str
    unit: str = "integer"  # e.g. integer, float, percentage, bytes
    metrics: Tuple[GraphMetric, ...] = field(default_factory=tuple)

    def with_prefix(self, prefix: str) -> "GraphDefinition":
        return GraphDefinition(
            key=self.key,
            label=f"{title(prefix)}: {self.label}",
            unit=self.unit,
            metrics=self.metrics,
        )


def title(text: str) -> str:
    """Upper-case the first letter of every word, leaving the rest untouched."""
    return re.sub(r"(?<!\w)(\w)", lambda match: match.group(1).upper(), text)


class MetricProvider(ABC):
    """Abstract base class for metric providers."""

    @abstractmethod
    def collect(self) -> Dict[str, float]:
        """Return the current value of every metric the source exposes."""
