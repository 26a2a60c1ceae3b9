import json

import httpx
import pytest

SAMPLE_STATS = {
    "acl-drops": 3,
    "cache-hits": 120,
    "cache-misses": 80,
    "downstream-send-errors": 0,
    "downstream-timeouts": 2,
    "fd-usage": 41,
    "latency-avg1000000": 55.5,
    "queries": 1000,
    "rdqueries": 990,
    "responses": 870,
    "rule-drop": 1,
    "rule-nxdomain": 4,
    "rule-refused": 0,
    "rule-servfail": 0,
    "rule-truncated": 7,
    "self-answered": 12,
    "servfail-responses": 5,
    "security-status": 1,
    "uptime": 86400,
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep DNSDIST_* and mackerel variables of the host out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("DNSDIST_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("MACKEREL_AGENT_PLUGIN_META", raising=False)


@pytest.fixture
def sample_stats():
    return dict(SAMPLE_STATS)


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def stats_transport(recorded_requests, sample_stats):
    """MockTransport answering every request with the sample stats."""

    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return httpx.Response(200, content=json.dumps(sample_stats).encode())

    return httpx.MockTransport(handler)


@pytest.fixture
def dnsdist_conf(tmp_path):
    """Write a dnsdist.conf and return its path."""

    def write(content: str):
        path = tmp_path / "dnsdist.conf"
        path.write_text(content)
        return path

    return write
