from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Counter sink; an optional ``observe(name, value, labels)`` records durations."""

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None: ...


@runtime_checkable
class DecisionLogSink(Protocol):
    def log(self, payload: Dict[str, Any]) -> None: ...


__all__ = ["MetricsSink", "DecisionLogSink"]
