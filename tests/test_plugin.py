import io
import json

from dnsdist_plugin.metrics.base import MetricProvider
from dnsdist_plugin.plugin import META_HEADER, Plugin


class StaticProvider(MetricProvider):
    def __init__(self, values):
        self.values = values
        self.calls = 0

    def collect(self):
        self.calls += 1
        return dict(self.values)


class TestPluginDefinitions:
    def test_metric_key_prefix(self):
        assert Plugin(StaticProvider({}), "edge").metric_key_prefix() == "edge"

    def test_graph_definition_uses_prefix(self):
        graphs = Plugin(StaticProvider({}), "foo").graph_definition()
        assert graphs["cache"].label.startswith("Foo:")

    def test_meta_document(self):
        meta = Plugin(StaticProvider({}), "dnsdist").meta()

        cache = meta["graphs"]["dnsdist.cache"]
        assert cache["label"] == "Dnsdist: Packet Cache"
        assert cache["unit"] == "integer"
        assert cache["metrics"] == [
            {"name": "cache-hits", "label": "Hits", "stacked": True},
            {"name": "cache-misses", "label": "Misses", "stacked": True},
        ]
        assert len(meta["graphs"]) == 8

    def test_run_in_meta_mode_prints_definitions(self, monkeypatch):
        monkeypatch.setenv("MACKEREL_AGENT_PLUGIN_META", "1")
        provider = StaticProvider({"queries": 1.0})
        out = io.StringIO()

        Plugin(provider, "dnsdist").run(out)

        header, body = out.getvalue().splitlines()
        assert header == META_HEADER
        assert "dnsdist.rule" in json.loads(body)["graphs"]
        assert provider.calls == 0


class TestPluginValues:
    def test_output_values(self):
        plugin = Plugin(StaticProvider({}), "dnsdist")
        out = io.StringIO()

        plugin.output_values(
            {"cache-hits": 120.0, "latency-avg1000000": 55.5, "uptime": 10.0},
            out,
            now=1700000000,
        )

        assert out.getvalue().splitlines() == [
            "dnsdist.cache.cache-hits\t120.000000\t1700000000",
            "dnsdist.latency.latency-avg1000000\t55.500000\t1700000000",
        ]

    def test_run_prints_fetched_values(self, sample_stats):
        provider = StaticProvider({k: float(v) for k, v in sample_stats.items()})
        out = io.StringIO()

        Plugin(provider, "edge").run(out)

        lines = out.getvalue().splitlines()
        assert provider.calls == 1
        assert len(lines) == 17
        assert any(line.startswith("edge.queries.rdqueries\t990.000000\t") for line in lines)
        assert not any(".uptime" in line for line in lines)
