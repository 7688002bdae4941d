from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, Optional

from .errors import InvalidArgument
from .model import Decision, Rule, coerce_names, coerce_resource
from .ports import DecisionLogSink, MetricsSink
from .serialization import rules_from_json, rules_to_data, rules_to_json
from .store import RuleStore

logger = logging.getLogger("aclx.engine")

_CHECK_ARGS = ("role", "resource", "action")


class RuleBuilder:
    """Second half of ``acl.match(resource, actions).then_allow(roles)``."""

    def __init__(self, store: RuleStore, resource: Any, actions: Any) -> None:
        self._store = store
        self._resource = coerce_resource(resource)
        self._actions = coerce_names(actions, "Cannot do acl match, actions")

    def then_allow(self, roles: Any) -> Rule:
        """Grant *roles* access; upserts by (pattern source, action set)."""
        rule = Rule(
            resource=self._resource,
            actions=self._actions,
            roles=coerce_names(roles, "Cannot add acl rule, roles"),
        )
        return self._store.upsert(rule)


class Acl:
    """Ordered access-control list.

    Rules are added with :meth:`match` and checked newest first by
    :meth:`is_allowed`; the first rule whose resource pattern and action
    match decides by its roles. With no matching rule access is denied.

    Args:
        rules: optional initial rules, oldest first.
        metrics: optional sink receiving ``aclx_decisions_total`` and
            ``aclx_decision_seconds``.
        logger_sink: optional sink whose ``log(payload)`` gets every decision.
    """

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        *,
        metrics: Optional[MetricsSink] = None,
        logger_sink: Optional[DecisionLogSink] = None,
    ) -> None:
        self._store = RuleStore(rules)
        self.metrics = metrics
        self.logger_sink = logger_sink

    # -- building ------------------------------------------------------------

    def match(self, resource: Any, actions: Any) -> RuleBuilder:
        return RuleBuilder(self._store, resource, actions)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._store.snapshot()

    def __len__(self) -> int:
        return len(self._store)

    # -- deciding ------------------------------------------------------------

    def evaluate(self, role: str, resource: str, action: str) -> Decision:
        args = (role, resource, action)
        for name, value in zip(_CHECK_ARGS, args):
            if not isinstance(value, str):
                raise InvalidArgument(
                    f"Can't check permission with this {name}. "
                    f"It should be a string, but it is a: {type(value).__name__}"
                )

        start = time.perf_counter()
        decision = self._decide(role, resource, action)
        elapsed = time.perf_counter() - start

        self._report(decision, elapsed)
        self._log(role, resource, action, decision)
        return decision

    def is_allowed(self, role: str, resource: str, action: str) -> bool:
        return self.evaluate(role, resource, action).allowed

    def _decide(self, role: str, resource: str, action: str) -> Decision:
        rules = self._store.snapshot()
        for index in range(len(rules) - 1, -1, -1):
            rule = rules[index]
            if rule.applies_to(resource, action):
                if rule.permits(role):
                    return Decision(True, "matched", rule, index)
                return Decision(False, "role_not_allowed", rule, index)
        return Decision(False, "no_match")

    def _report(self, decision: Decision, elapsed: float) -> None:
        if self.metrics is None:
            return
        labels = {"decision": decision.effect}
        try:
            self.metrics.inc("aclx_decisions_total", labels)
        except Exception:
            logger.debug("metrics.inc failed", exc_info=True)
        observe = getattr(self.metrics, "observe", None)
        if observe is not None:
            try:
                observe("aclx_decision_seconds", elapsed, labels)
            except Exception:
                logger.debug("metrics.observe failed", exc_info=True)

    def _log(self, role: str, resource: str, action: str, decision: Decision) -> None:
        if self.logger_sink is None:
            return
        log = getattr(self.logger_sink, "log", None)
        if log is None:
            return
        payload: Dict[str, Any] = {
            "role": role,
            "resource": resource,
            "action": action,
            "decision": decision.effect,
            "allowed": decision.allowed,
            "reason": decision.reason,
            "rule_index": decision.rule_index,
        }
        try:
            log(payload)
        except Exception:
            logger.debug("decision logger sink failed", exc_info=True)

    # -- persistence ---------------------------------------------------------

    def to_data(self) -> list[dict[str, Any]]:
        return rules_to_data(self._store.snapshot())

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialize all rules, oldest first, with resources as ``/pattern/``."""
        return rules_to_json(self._store.snapshot(), indent=indent)

    def from_json(self, data: str | bytes) -> None:
        """Replace every rule with those parsed from *data*.

        Raises :class:`DeserializationError` and leaves the current rules in
        place when *data* is malformed.
        """
        rules = rules_from_json(data)
        self._store.replace(rules)
        logger.debug("loaded %d acl rules", len(rules))

    def load_rules(self, rules: Iterable[Rule]) -> None:
        """Replace every rule; raises InvalidArgument on non-Rule items or duplicate identities."""
        self._store.replace(rules)


__all__ = ["Acl", "RuleBuilder"]
