from __future__ import annotations

import threading
from typing import Any, Iterable

from .errors import InvalidArgument
from .model import Rule


def _checked(rules: Iterable[Any]) -> tuple[Rule, ...]:
    out = tuple(rules)
    seen: dict[Any, int] = {}
    for i, rule in enumerate(out):
        if not isinstance(rule, Rule):
            raise InvalidArgument(f"rule {i} must be a Rule, but was: {type(rule).__name__}")
        first = seen.setdefault(rule.identity, i)
        if first != i:
            raise InvalidArgument(f"rule {i} has the same resource and actions as rule {first}")
    return out


class RuleStore:
    """Insertion-ordered rule collection; later rules take priority.

    Rules are held in an immutable tuple that writers replace under a lock
    (copy-on-write). Readers grab the current tuple with :meth:`snapshot`
    and never see a half-applied upsert or reset.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._lock = threading.RLock()
        self._rules: tuple[Rule, ...] = _checked(rules)

    def snapshot(self) -> tuple[Rule, ...]:
        return self._rules

    def upsert(self, rule: Rule) -> Rule:
        """Replace the rule with the same identity in place, or append *rule*."""
        key = rule.identity
        with self._lock:
            rules = list(self._rules)
            for i, existing in enumerate(rules):
                if existing.identity == key:
                    rules[i] = rule
                    break
            else:
                rules.append(rule)
            self._rules = tuple(rules)
        return rule

    def replace(self, rules: Iterable[Rule]) -> None:
        """Swap in *rules* wholesale; raises InvalidArgument and keeps the old rules on bad input."""
        new_rules = _checked(rules)
        with self._lock:
            self._rules = new_rules

    def __len__(self) -> int:
        return len(self._rules)


__all__ = ["RuleStore"]
