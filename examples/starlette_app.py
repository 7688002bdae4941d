import logging
import re

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from aclx import Acl
from aclx.adapters.asgi import AclMiddleware
from aclx.logging.decision_logger import DecisionLogger

logging.basicConfig(level=logging.INFO, format="%(message)s")

acl = Acl(logger_sink=DecisionLogger(as_json=True, sample_rate=0.1, deny_sample_rate=1.0))
acl.match(re.compile(r"^/items"), ["GET", "POST", "DELETE"]).then_allow("admin")
acl.match(re.compile(r"^/items"), "GET").then_allow("*")


class HeaderAuth:
    """Demo only: trusts an x-role header and stores the user in scope."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            role = dict(scope.get("headers") or []).get(b"x-role")
            scope["user"] = {"role": role.decode()} if role else None
        await self.app(scope, receive, send)


async def items(request):
    return JSONResponse({"method": request.method})


async def ping(request):
    return JSONResponse({"pong": True})


app = Starlette(
    routes=[Route("/items", items, methods=["GET", "POST", "DELETE"]), Route("/ping", ping)],
    middleware=[
        Middleware(HeaderAuth),
        Middleware(AclMiddleware, acl=acl, add_headers=True, exclude_paths=["/ping"]),
    ],
)
