import logging

from aclx import Acl


def _acl(**kw):
    acl = Acl(**kw)
    acl.match("/ok", "read").then_allow("u")
    return acl


def test_metrics_inc_and_observe_called_with_decision_label():
    calls = []

    class Metrics:
        def inc(self, name, labels):
            calls.append(("inc", name, dict(labels)))

        def observe(self, name, value, labels):
            calls.append(("observe", name, dict(labels), value))

    acl = _acl(metrics=Metrics())
    acl.is_allowed("u", "/ok", "read")
    acl.is_allowed("u", "/nope", "read")

    incs = [c for c in calls if c[0] == "inc"]
    assert [c[2]["decision"] for c in incs] == ["allow", "deny"]
    assert all(c[1] == "aclx_decisions_total" for c in incs)
    observes = [c for c in calls if c[0] == "observe"]
    assert len(observes) == 2 and observes[0][1] == "aclx_decision_seconds"
    assert observes[0][3] >= 0.0


def test_metrics_without_observe_is_fine():
    seen = []

    class IncOnly:
        def inc(self, name, labels):
            seen.append(labels["decision"])

    assert _acl(metrics=IncOnly()).is_allowed("u", "/ok", "read") is True
    assert seen == ["allow"]


def test_failing_metrics_do_not_change_decision(caplog):
    class Boom:
        def inc(self, name, labels):
            raise RuntimeError("boom-inc")

        def observe(self, name, value, labels):
            raise RuntimeError("boom-observe")

    caplog.set_level(logging.DEBUG, logger="aclx.engine")
    assert _acl(metrics=Boom()).is_allowed("u", "/ok", "read") is True
    assert any("metrics.inc failed" in r.getMessage() for r in caplog.records)


def test_logger_sink_receives_payload():
    received = {}

    class Sink:
        def log(self, payload):
            received.update(payload)

    d = _acl(logger_sink=Sink()).evaluate("guest", "/ok", "read")
    assert received == {
        "role": "guest",
        "resource": "/ok",
        "action": "read",
        "decision": d.effect,
        "allowed": False,
        "reason": "role_not_allowed",
        "rule_index": 0,
    }


def test_logger_sink_without_log_and_failing_sink():
    class NoLog:
        pass

    class Raising:
        def log(self, payload):
            raise RuntimeError("sink down")

    assert _acl(logger_sink=NoLog()).is_allowed("u", "/ok", "read") is True
    assert _acl(logger_sink=Raising()).is_allowed("u", "/ok", "read") is True


def test_invalid_arguments_are_not_reported():
    calls = []

    class Metrics:
        def inc(self, name, labels):
            calls.append(labels)

    acl = _acl(metrics=Metrics())
    try:
        acl.is_allowed(None, "/ok", "read")
    except TypeError:
        pass
    assert calls == []
