import pathlib

from flask import Flask, g, request

from aclx import Acl
from aclx.adapters.flask import require_access
from aclx.storage import FileRuleSource

acl = Acl()
FileRuleSource(str(pathlib.Path(__file__).with_name("rules.json"))).load_into(acl)

app = Flask(__name__)


@app.before_request
def load_user():
    role = request.headers.get("x-role")
    g.user = {"role": role} if role else None


@app.get("/ping")
def ping():
    return {"pong": True}


@app.route("/reports", methods=["GET", "POST"])
@require_access(acl, add_headers=True)
def reports():
    return {"ok": True}
