import pytest

pytest.importorskip("starlette", reason="Optional dep: Starlette not installed")
pytest.importorskip("httpx", reason="Starlette TestClient needs httpx")

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

import aclx.adapters.starlette as st
from aclx import Acl


def _acl():
    acl = Acl()
    acl.match("/docs", "GET").then_allow("reader")
    return acl


def _header_role(request):
    return request.headers.get("x-role")


def _app(**kw):
    acl = _acl()

    @st.require_access(acl, get_role=_header_role, **kw)
    async def docs(request):
        return JSONResponse({"ok": True})

    @st.require_access(acl, get_role=_header_role)
    def docs_sync(request):
        return JSONResponse({"sync": True})

    return Starlette(routes=[Route("/docs", docs), Route("/sync", docs_sync)])


def test_async_endpoint_allow_403_401():
    client = TestClient(_app(add_headers=True))
    assert client.get("/docs", headers={"x-role": "reader"}).json() == {"ok": True}

    r = client.get("/docs", headers={"x-role": "guest"})
    assert r.status_code == 403
    assert r.json() == {"detail": "Forbidden"}
    assert r.headers["x-aclx-reason"] == "role_not_allowed"

    r = client.get("/docs")
    assert r.status_code == 401
    assert r.json() == {"detail": "Authentication required"}


def test_sync_endpoint_uses_path_as_resource():
    client = TestClient(_app())
    # no rule for /sync: fail-closed
    r = client.get("/sync", headers={"x-role": "reader"})
    assert r.status_code == 403
    assert "x-aclx-reason" not in r.headers


@pytest.mark.asyncio
async def test_dependency_form_reads_user_from_scope():
    dep = st.require_access(_acl())

    class User:
        role = "reader"

    def make(user, method="GET"):
        scope = {"type": "http", "method": method, "path": "/docs", "headers": [], "query_string": b""}
        if user is not None:
            scope["user"] = user
        return Request(scope)

    assert await dep(make(User())) is None
    denied = await dep(make(User(), method="DELETE"))
    assert denied.status_code == 403
    unauth = await dep(make(None))
    assert unauth.status_code == 401
