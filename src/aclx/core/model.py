from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .errors import InvalidArgument

WILDCARD = "*"

# flags that survive serialization as an inline prefix, e.g. "(?i)"
_INLINE_FLAGS = (
    (re.ASCII, "a"),
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


@dataclass(frozen=True)
class Rule:
    """A single policy entry: who may do which actions on matching resources.

    ``resource`` is always a compiled pattern. Rules built from a literal
    resource name carry an anchored, escaped pattern; rules built from a
    pattern (or loaded from JSON) carry it verbatim.
    """

    resource: re.Pattern[str]
    actions: tuple[str, ...]
    roles: tuple[str, ...]

    def __post_init__(self) -> None:
        if not (isinstance(self.resource, re.Pattern) and isinstance(self.resource.pattern, str)):
            raise InvalidArgument(
                f"Rule resource must be a compiled pattern, but was: {type(self.resource).__name__}"
            )
        object.__setattr__(self, "actions", coerce_names(self.actions, "Rule actions"))
        object.__setattr__(self, "roles", coerce_names(self.roles, "Rule roles"))

    @property
    def identity(self) -> tuple[str, frozenset[str]]:
        """Upsert key: serialized pattern source plus the unordered action set."""
        return (pattern_source(self.resource), frozenset(self.actions))

    def applies_to(self, resource: str, action: str) -> bool:
        if self.resource.search(resource) is None:
            return False
        return action == WILDCARD or action in self.actions

    def permits(self, role: str) -> bool:
        return WILDCARD in self.roles or role in self.roles


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str
    rule: Optional[Rule] = None
    rule_index: Optional[int] = None

    @property
    def effect(self) -> str:
        return "allow" if self.allowed else "deny"


def literal_pattern(resource: str) -> re.Pattern[str]:
    """Compile *resource* so that it matches only that exact string."""
    # a bare "$" would also accept a trailing newline
    return re.compile("^" + re.escape(resource) + r"$(?!\n)")


def pattern_source(pattern: re.Pattern[str]) -> str:
    """Pattern text with any flags it was compiled with spelled out inline.

    Compiling the result again gives a pattern that matches the same strings.
    """
    try:
        implied = re.compile(pattern.pattern).flags
    except re.error:
        # e.g. a verbose pattern whose comments only parse under re.VERBOSE
        implied = 0
    letters = "".join(ch for flag, ch in _INLINE_FLAGS if pattern.flags & flag and not implied & flag)
    if not letters:
        return pattern.pattern
    return f"(?{letters})" + pattern.pattern


def coerce_resource(resource: Any) -> re.Pattern[str]:
    if isinstance(resource, str):
        return literal_pattern(resource)
    if isinstance(resource, re.Pattern) and isinstance(resource.pattern, str):
        return resource
    raise InvalidArgument(
        f"Cannot do acl match, resource must be a string or a compiled pattern, "
        f"but was: {type(resource).__name__}"
    )


def coerce_names(value: Any, what: str) -> tuple[str, ...]:
    """Normalize a single name or a collection of names into a non-empty tuple."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (bytes, bytearray, Mapping)) or not isinstance(value, Iterable):
        raise InvalidArgument(
            f"{what} must be a string or a collection of strings, but were: {type(value).__name__}"
        )
    names = tuple(value)
    for name in names:
        if not isinstance(name, str):
            raise InvalidArgument(
                f"{what} must contain only strings, but found: {type(name).__name__}"
            )
    if not names:
        raise InvalidArgument(f"{what} must not be empty")
    return names


__all__ = [
    "WILDCARD",
    "Rule",
    "Decision",
    "literal_pattern",
    "pattern_source",
    "coerce_resource",
    "coerce_names",
]
