import importlib
import sys
import types

from aclx import Acl


def _install_fake_prometheus(monkeypatch):
    class _Child:
        def __init__(self, parent, labels):
            self._parent = parent
            self._labels = labels

        def inc(self, *args, **kwargs):
            self._parent.counts[self._labels["decision"]] = self._parent.counts.get(self._labels["decision"], 0) + 1

        def observe(self, v):
            self._parent.values.append((self._labels["decision"], float(v)))

    class Cnt:
        def __init__(self, name, doc, labelnames=None, registry=None):
            self.name, self.doc = name, doc
            self.labelnames = tuple(labelnames or [])
            self.registry = registry
            self.counts = {}

        def labels(self, **kw):
            return _Child(self, kw)

    class Hst(Cnt):
        def __init__(self, name, doc, labelnames=None, registry=None):
            super().__init__(name, doc, labelnames, registry)
            self.values = []

    fake = types.ModuleType("prometheus_client")
    fake.Counter = Cnt
    fake.Histogram = Hst
    monkeypatch.setitem(sys.modules, "prometheus_client", fake)
    if "aclx.metrics.prometheus" in sys.modules:
        return importlib.reload(sys.modules["aclx.metrics.prometheus"])
    return importlib.import_module("aclx.metrics.prometheus")


def _install_fake_otel(monkeypatch):
    class _Hist:
        def __init__(self):
            self.values = []

        def record(self, v, attributes=None):
            self.values.append((float(v), dict(attributes or {})))

    class _Counter:
        def __init__(self):
            self.adds = []

        def add(self, v, attributes=None):
            self.adds.append((int(v), dict(attributes or {})))

    class _Meter:
        def create_counter(self, name, **kw):
            return _Counter()

        def create_histogram(self, name, **kw):
            return _Hist()

    fake = types.ModuleType("opentelemetry.metrics")
    fake.get_meter = lambda *a, **k: _Meter()
    monkeypatch.setitem(sys.modules, "opentelemetry.metrics", fake)
    if "aclx.metrics.otel" in sys.modules:
        return importlib.reload(sys.modules["aclx.metrics.otel"])
    return importlib.import_module("aclx.metrics.otel")


def test_prometheus_metrics_count_and_observe(monkeypatch):
    mod = _install_fake_prometheus(monkeypatch)
    registry = object()
    m = mod.PrometheusMetrics(registry=registry)
    assert m._counter.name == "aclx_decisions_total"
    assert m._counter.registry is registry
    assert m._hist.labelnames == ("decision",)

    m.inc("aclx_decisions_total", {"decision": "allow"})
    m.inc("ignored", None)
    m.observe("aclx_decision_seconds", 0.125, {"decision": "deny"})
    assert m._counter.counts == {"allow": 1, "unknown": 1}
    assert m._hist.values == [("deny", 0.125)]


def test_otel_metrics_count_and_observe(monkeypatch):
    mod = _install_fake_otel(monkeypatch)
    m = mod.OpenTelemetryMetrics()
    m.inc("aclx_decisions_total", {"decision": "deny"})
    m.observe("aclx_decision_seconds", 0.2, {"decision": "deny"})
    assert m._counter.adds == [(1, {"decision": "deny"})]
    assert m._hist.values == [(0.2, {"decision": "deny"})]


def test_acl_with_prometheus_sink(monkeypatch):
    mod = _install_fake_prometheus(monkeypatch)
    m = mod.PrometheusMetrics()
    acl = Acl(metrics=m)
    acl.match("/x", "read").then_allow("u")
    acl.is_allowed("u", "/x", "read")
    acl.is_allowed("v", "/x", "read")
    assert m._counter.counts == {"allow": 1, "deny": 1}
    assert [d for d, _ in m._hist.values] == ["allow", "deny"]
