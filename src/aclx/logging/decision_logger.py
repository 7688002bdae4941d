from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict, Optional

from ..core.ports import DecisionLogSink


class DecisionLogger(DecisionLogSink):
    """Audit sink that writes every (sampled) decision to the ``aclx.audit`` logger.

    Args:
        sample_rate: probability in [0, 1] of logging a decision.
        deny_sample_rate: separate probability for denials; defaults to
            ``sample_rate``. Set to 1.0 to keep every denial while sampling
            allowed requests.
        level: logging level of emitted records.
        as_json: emit ``json.dumps(payload)`` instead of ``"decision {...}"``.
    """

    def __init__(
        self,
        *,
        sample_rate: float = 1.0,
        deny_sample_rate: Optional[float] = None,
        level: int = logging.INFO,
        as_json: bool = False,
    ) -> None:
        self.sample_rate = _clamp(sample_rate)
        self.deny_sample_rate = None if deny_sample_rate is None else _clamp(deny_sample_rate)
        self.level = level
        self.as_json = as_json
        self.logger = logging.getLogger("aclx.audit")

    def _rate_for(self, payload: Dict[str, Any]) -> float:
        if self.deny_sample_rate is not None and payload.get("allowed") is False:
            return self.deny_sample_rate
        return self.sample_rate

    def log(self, payload: Dict[str, Any]) -> None:
        rate = self._rate_for(payload)
        if rate <= 0.0:
            return
        if rate < 1.0 and random.random() >= rate:
            return

        if self.as_json:
            msg = json.dumps(payload, ensure_ascii=False)
        else:
            msg = f"decision {payload}"
        self.logger.log(self.level, msg)


def _clamp(rate: float) -> float:
    return max(0.0, min(1.0, float(rate)))


__all__ = ["DecisionLogger"]
