from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..core.engine import Acl
from ._common import (
    AccessOutcome,
    ActionGetter,
    ResourceGetter,
    RoleGetter,
    authorize,
    deny_headers,
    deny_payload,
    role_of,
)


def default_role(request: Request) -> Optional[str]:
    # request.user asserts when AuthenticationMiddleware is missing; read the scope instead
    return role_of(request.scope.get("user"))


def default_resource(request: Request) -> str:
    return request.url.path


def default_action(request: Request) -> str:
    return request.method


def _deny_response(outcome: AccessOutcome, add_headers: bool) -> JSONResponse:
    return JSONResponse(
        deny_payload(outcome),
        status_code=outcome.status,
        headers=deny_headers(outcome, add_headers),
    )


def require_access(
    acl: Acl,
    *,
    get_role: Optional[RoleGetter] = None,
    get_resource: Optional[ResourceGetter] = None,
    get_action: Optional[ActionGetter] = None,
    add_headers: bool = False,
) -> Callable[..., Any]:
    """
    Starlette adapter that works both:
      - as a decorator on an endpoint (returns an async endpoint)
      - as a dependency-like callable: `dep = require_access(...); await dep(request)`

    The dependency form returns ``None`` when access is granted, otherwise a
    401 (no role) or 403 (denied) JSONResponse.
    """
    role_fn = get_role or default_role
    resource_fn = get_resource or default_resource
    action_fn = get_action or default_action

    async def _dependency(request: Any) -> Optional[JSONResponse]:
        outcome = authorize(acl, role_fn(request), resource_fn(request), action_fn(request))
        if outcome.allowed:
            return None
        return _deny_response(outcome, add_headers)

    def _decorator_or_dependency(arg: Any) -> Any:
        if not callable(arg):
            return _dependency(arg)

        handler = arg
        if inspect.iscoroutinefunction(handler):

            async def _endpoint_async(request: Any) -> Any:
                deny = await _dependency(request)
                if deny is not None:
                    return deny
                return await handler(request)

            return _endpoint_async

        async def _endpoint_sync(request: Any) -> Any:
            deny = await _dependency(request)
            if deny is not None:
                return deny
            return await run_in_threadpool(handler, request)

        return _endpoint_sync

    return _decorator_or_dependency


__all__ = ["require_access", "default_role", "default_resource", "default_action"]
