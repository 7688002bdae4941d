from __future__ import annotations

from typing import Any, Dict, Optional

from aclx.core.ports import MetricsSink

try:
    from prometheus_client import Counter, Histogram  # type: ignore
except Exception:  # pragma: no cover
    Counter = Histogram = None  # type: ignore


class PrometheusMetrics(MetricsSink):
    """Prometheus-based MetricsSink.

    Exposes:
      - aclx_decisions_total{decision="allow|deny"}
      - aclx_decision_seconds{decision="allow|deny"} (Histogram)

    Pass a dedicated ``registry`` when more than one instance lives in a
    process; the default registry rejects duplicate metric names.
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, *, registry: Any = None) -> None:
        self._counter = None
        self._hist = None

        if Counter is None or Histogram is None:  # pragma: no cover
            return

        kwargs: Dict[str, Any] = {}
        if registry is not None:
            kwargs["registry"] = registry

        self._counter = Counter(
            "aclx_decisions_total",
            "Total ACL decisions by effect.",
            labelnames=("decision",),
            **kwargs,
        )
        self._hist = Histogram(
            "aclx_decision_seconds",
            "ACL decision evaluation duration in seconds.",
            labelnames=("decision",),
            **kwargs,
        )

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        """Increment ``aclx_decisions_total``; *name* is accepted for the protocol and ignored."""
        if self._counter is None:  # pragma: no cover
            return
        decision = (labels or {}).get("decision", "unknown")
        self._counter.labels(decision=decision).inc()

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        if self._hist is None:  # pragma: no cover
            return
        decision = (labels or {}).get("decision", "unknown")
        self._hist.labels(decision=decision).observe(float(value))


__all__ = ["PrometheusMetrics"]
