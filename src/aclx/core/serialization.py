"""JSON form of a rule list.

Each rule is written as an object with ``resource``, ``actions`` and
``roles``. The resource pattern is wrapped as ``/<pattern>/`` so that a
reader can tell it apart from a literal name; on the way back in the body
is compiled verbatim, without escaping or anchoring. Flags the pattern was
compiled with are written inline (``(?i)...``).
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List

from .errors import DeserializationError
from .model import Rule, pattern_source

_WRAPPED = re.compile(r"/(.*)/", re.DOTALL)


def wrap_pattern(pattern: re.Pattern[str]) -> str:
    return "/" + pattern_source(pattern) + "/"


def unwrap_pattern(value: Any, index: int) -> re.Pattern[str]:
    if not isinstance(value, str):
        raise DeserializationError(
            f"rule {index}: resource must be a '/pattern/' string, got {type(value).__name__}"
        )
    m = _WRAPPED.fullmatch(value)
    if m is None:
        raise DeserializationError(f"rule {index}: resource {value!r} is not wrapped in '/.../'")
    try:
        return re.compile(m.group(1))
    except re.error as e:
        raise DeserializationError(f"rule {index}: invalid resource pattern {value!r}: {e}") from e


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    return {
        "resource": wrap_pattern(rule.resource),
        "actions": list(rule.actions),
        "roles": list(rule.roles),
    }


def _names(record: Dict[str, Any], key: str, index: int) -> tuple[str, ...]:
    value = record.get(key)
    if not isinstance(value, list) or not value:
        raise DeserializationError(f"rule {index}: '{key}' must be a non-empty list of strings")
    if not all(isinstance(v, str) for v in value):
        raise DeserializationError(f"rule {index}: '{key}' must contain only strings")
    return tuple(value)


def rule_from_dict(record: Any, index: int = 0) -> Rule:
    if not isinstance(record, dict):
        raise DeserializationError(f"rule {index}: expected an object, got {type(record).__name__}")
    return Rule(
        resource=unwrap_pattern(record.get("resource"), index),
        actions=_names(record, "actions", index),
        roles=_names(record, "roles", index),
    )


def rules_to_data(rules: Iterable[Rule]) -> List[Dict[str, Any]]:
    return [rule_to_dict(r) for r in rules]


def rules_from_data(data: Any) -> List[Rule]:
    """Build rules from an already-parsed list (e.g. loaded from YAML)."""
    if not isinstance(data, list):
        raise DeserializationError(f"expected a list of rules, got {type(data).__name__}")
    rules = [rule_from_dict(record, i) for i, record in enumerate(data)]
    seen: Dict[Any, int] = {}
    for i, rule in enumerate(rules):
        first = seen.setdefault(rule.identity, i)
        if first != i:
            raise DeserializationError(f"rule {i}: same resource and actions as rule {first}")
    return rules


def rules_to_json(rules: Iterable[Rule], *, indent: int | None = None) -> str:
    return json.dumps(rules_to_data(rules), indent=indent, ensure_ascii=False)


def rules_from_json(text: str | bytes) -> List[Rule]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"rules are not valid JSON: {e}") from e
    return rules_from_data(data)


__all__ = [
    "wrap_pattern",
    "unwrap_pattern",
    "rule_to_dict",
    "rule_from_dict",
    "rules_to_data",
    "rules_from_data",
    "rules_to_json",
    "rules_from_json",
]
