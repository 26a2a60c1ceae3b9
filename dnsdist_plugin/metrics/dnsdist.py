import json
import logging
import math
import re
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

import httpx

from .base import GraphDefinition, GraphMetric, MetricProvider, StatsError
from .registry import GraphRegistry

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

GRAPHS = GraphRegistry(
    [
        GraphDefinition(
            key="acl-drop",
            label="Dropped packets becaused of the ACL",
            metrics=(GraphMetric("acl-drops", "Dropped", diff=True),),
        ),
        GraphDefinition(
            key="cache",
            label="Packet Cache",
            metrics=(
                GraphMetric("cache-hits", "Hits", stacked=True, diff=True),
                GraphMetric("cache-misses", "Misses", stacked=True, diff=True),
            ),
        ),
        GraphDefinition(
            key="downstream-errors",
            label="Backend errors",
            metrics=(
                GraphMetric("downstream-send-errors", "Send error", diff=True),
                GraphMetric("downstream-timeouts", "Timeouts", diff=True),
            ),
        ),
        GraphDefinition(
            key="latency",
            label="Latency (microseconds)",
            metrics=(GraphMetric("latency-avg1000000", "Latency1000000"),),
        ),
        GraphDefinition(
            key="queries",
            label="Queries",
            metrics=(
                GraphMetric("queries", "Queries", diff=True),
                GraphMetric("rdqueries", "Query with rd bit", diff=True),
            ),
        ),
        GraphDefinition(
            key="responses",
            label="Response",
            metrics=(
                GraphMetric("responses", "Backend responses", diff=True),
                GraphMetric("self-answered", "Self answered", diff=True),
                GraphMetric("servfail-responses", "Backend servfail", diff=True),
            ),
        ),
        GraphDefinition(
            key="rule",
            label="Returned because of rules",
            metrics=(
                GraphMetric("rule-drop", "Drop", stacked=True, diff=True),
                GraphMetric("rule-nxdomain", "Nxdomain", stacked=True, diff=True),
                GraphMetric("rule-refused", "Refused", stacked=True, diff=True),
                GraphMetric("rule-servfail", "Servfail", stacked=True, diff=True),
                GraphMetric("rule-truncated", "Truncated", stacked=True, diff=True),
            ),
        ),
        GraphDefinition(
            key="fd",
            label="FD usage",
            metrics=(GraphMetric("fd-usage", "usage"),),
        ),
    ]
)

_INFINITY = re.compile(r"[+-]?(inf|infinity)", re.IGNORECASE)


def graph_definition(prefix: str) -> Dict[str, GraphDefinition]:
    return GRAPHS.render(prefix)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def decode_stats(content: bytes) -> Dict[str, Any]:
    """Decode the stats document, keeping numbers as ``Decimal``."""
    payload = json.loads(
        content,
        parse_float=Decimal,
        parse_int=Decimal,
        parse_constant=_reject_constant,
    )
    if not isinstance(payload, dict):
        raise ValueError(
            f"expected a JSON object, got {type(payload).__name__}"
        )
    return payload


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, Decimal):
        text = str(value)
    elif isinstance(value, str):
        text = value
        if text != text.strip() or "_" in text:
            return None
    else:
        # bool, None, dict and list are never numeric
        return None

    try:
        number = float(text)
    except ValueError:
        return None
    if math.isinf(number) and not _INFINITY.fullmatch(text):
        return None  # out of float64 range
    return number


def coerce_metrics(payload: Mapping[str, Any]) -> Dict[str, float]:
    """Keep the fields that convert to a float, dropping everything else."""
    result: Dict[str, float] = {}
    for name, value in payload.items():
        number = _to_float(value)
        if number is None:
            logger.debug("Skipping non-numeric field %r", name)
            continue
        result[name] = number
    return result


class DnsdistStats(MetricProvider):
    """Statistics of a single dnsdist instance read from its webserver."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        api_key: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.api_key = api_key
        self._transport = transport

    def _client(self) -> httpx.Client:
        # 0 means no timeout
        timeout = httpx.Timeout(self.timeout or None)
        return httpx.Client(
            timeout=timeout,
            follow_redirects=False,
            transport=self._transport,
        )

    def fetch(self) -> httpx.Response:
        """Issue the GET request; redirects are handed back unfollowed."""
        headers = {API_KEY_HEADER: self.api_key} if self.api_key else {}
        with self._client() as client:
            response = client.get(self.url, headers=headers)
        logger.debug("GET %s -> %s", self.url, response.status_code)
        return response

    def collect(self) -> Dict[str, float]:
        try:
            response = self.fetch()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise StatsError(f"request to {self.url} failed: {exc}") from exc

        try:
            payload = decode_stats(response.content)
        except ValueError as exc:
            raise StatsError(f"cannot decode stats from {self.url}: {exc}") from exc

        return coerce_metrics(payload)
