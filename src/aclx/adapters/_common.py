from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.engine import Acl
from ..core.model import Decision

# request -> value; adapters ship defaults for each
RoleGetter = Callable[[Any], Optional[str]]
ResourceGetter = Callable[[Any], str]
ActionGetter = Callable[[Any], str]

UNAUTHENTICATED = "authentication_required"


@dataclass(frozen=True)
class AccessOutcome:
    status: int
    reason: str
    decision: Optional[Decision] = None

    @property
    def allowed(self) -> bool:
        return self.status == 200


def role_of(user: Any) -> Optional[str]:
    """Read ``role`` off an authenticated user object or mapping."""
    if user is None:
        return None
    if isinstance(user, Mapping):
        return user.get("role")
    return getattr(user, "role", None)


def authorize(acl: Acl, role: Optional[str], resource: str, action: str) -> AccessOutcome:
    """401 without a role, otherwise 200 or 403 depending on the acl."""
    if not role:
        return AccessOutcome(401, UNAUTHENTICATED)
    decision = acl.evaluate(role, resource, action)
    return AccessOutcome(200 if decision.allowed else 403, decision.reason, decision)


def deny_payload(outcome: AccessOutcome) -> dict[str, str]:
    if outcome.status == 401:
        return {"detail": "Authentication required"}
    return {"detail": "Forbidden"}


def deny_headers(outcome: AccessOutcome, add_headers: bool) -> dict[str, str]:
    if not add_headers:
        return {}
    headers = {"X-ACLX-Reason": outcome.reason}
    if outcome.decision is not None and outcome.decision.rule_index is not None:
        headers["X-ACLX-Rule"] = str(outcome.decision.rule_index)
    return headers


__all__ = [
    "RoleGetter",
    "ResourceGetter",
    "ActionGetter",
    "AccessOutcome",
    "role_of",
    "authorize",
    "deny_payload",
    "deny_headers",
]
