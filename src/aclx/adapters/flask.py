from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional

from flask import g, jsonify, request

from ..core.engine import Acl
from ._common import ActionGetter, ResourceGetter, RoleGetter, authorize, deny_headers, deny_payload, role_of


def default_role(_req: Any) -> Optional[str]:
    return role_of(g.get("user"))


def default_resource(req: Any) -> str:
    return req.path


def default_action(req: Any) -> str:
    return req.method


def require_access(
    acl: Acl,
    *,
    get_role: Optional[RoleGetter] = None,
    get_resource: Optional[ResourceGetter] = None,
    get_action: Optional[ActionGetter] = None,
    add_headers: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for Flask views.

    Reads the role from ``flask.g.user`` unless *get_role* is given. On
    failure the view is not called and ``(json, 401|403, headers)`` is
    returned instead.
    """
    role_fn = get_role or default_role
    resource_fn = get_resource or default_resource
    action_fn = get_action or default_action

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            outcome = authorize(acl, role_fn(request), resource_fn(request), action_fn(request))
            if outcome.allowed:
                return fn(*args, **kwargs)
            return jsonify(deny_payload(outcome)), outcome.status, deny_headers(outcome, add_headers)

        return wrapper

    return decorator


__all__ = ["require_access", "default_role", "default_resource", "default_action"]
