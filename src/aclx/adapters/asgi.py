import logging
from typing import Any, Awaitable, Callable, Iterable, MutableMapping, Optional

from starlette.responses import JSONResponse

from ..core.engine import Acl
from ._common import authorize, deny_headers, deny_payload, role_of

logger = logging.getLogger(__name__)

Scope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]
ScopeRoleGetter = Callable[[Scope], Optional[str]]


def scope_role(scope: Scope) -> Optional[str]:
    """Role of the authenticated user placed in ``scope["user"]`` by auth middleware."""
    return role_of(scope.get("user"))


class AclMiddleware:
    """ASGI middleware that checks every HTTP request against an :class:`Acl`.

    The resource is the request path and the action is the HTTP method.
    Requests without a role get 401, denied requests get 403; websocket and
    lifespan scopes pass through untouched.
    """

    def __init__(
        self,
        app: Any,
        *,
        acl: Acl,
        get_role: Optional[ScopeRoleGetter] = None,
        add_headers: bool = False,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self.app = app
        self.acl = acl
        self.get_role = get_role or scope_role
        self.add_headers = add_headers
        self.exclude_paths = frozenset(exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        outcome = authorize(self.acl, self.get_role(scope), path, scope.get("method", "GET"))
        if outcome.allowed:
            await self.app(scope, receive, send)
            return

        logger.debug("aclx: %s %s rejected with %d (%s)", scope.get("method"), path, outcome.status, outcome.reason)
        res = JSONResponse(
            deny_payload(outcome),
            status_code=outcome.status,
            headers=deny_headers(outcome, self.add_headers),
        )
        await res(scope, receive, send)


__all__ = ["AclMiddleware", "scope_role"]
