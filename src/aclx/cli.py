from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List, Optional

from . import __version__
from .core.engine import Acl
from .core.errors import AclError
from .storage import FileRuleSource

EXIT_OK = 0
EXIT_DENIED = 1
EXIT_INVALID = 2


def _load(path: str, fmt: Optional[str]) -> Acl:
    acl = Acl()
    FileRuleSource(path, fmt=fmt).load_into(acl)
    return acl


def _print(obj: Any, *, as_json: bool) -> None:
    if as_json:
        sys.stdout.write(json.dumps(obj, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(str(obj) + "\n")


def cmd_check(args: argparse.Namespace) -> int:
    acl = _load(args.rules, args.format)
    d = acl.evaluate(args.role, args.resource, args.action)
    if args.json:
        _print(
            {"allowed": d.allowed, "decision": d.effect, "reason": d.reason, "rule_index": d.rule_index},
            as_json=True,
        )
    else:
        _print(d.effect, as_json=False)
    return EXIT_OK if d.allowed else EXIT_DENIED


def cmd_validate(args: argparse.Namespace) -> int:
    acl = _load(args.rules, args.format)
    if args.json:
        _print({"ok": True, "rules": len(acl)}, as_json=True)
    else:
        _print(f"OK ({len(acl)} rules)", as_json=False)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="aclx", description="Check requests against an aclx rule file")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--format", choices=("json", "yaml"), default=None, help="rule file format (default: by extension)")
    common.add_argument("--json", action="store_true", help="machine-readable output")

    c = sub.add_parser("check", parents=[common], help="decide a single request")
    c.add_argument("--rules", required=True, help="path to the rule file")
    c.add_argument("role")
    c.add_argument("resource")
    c.add_argument("action")
    c.set_defaults(func=cmd_check)

    v = sub.add_parser("validate", parents=[common], help="parse a rule file and report errors")
    v.add_argument("rules", help="path to the rule file")
    v.set_defaults(func=cmd_validate)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        rc = args.func(args)
    except FileNotFoundError as e:
        sys.stderr.write(f"aclx: file not found: {e.filename}\n")
        return EXIT_INVALID
    except OSError as e:
        sys.stderr.write(f"aclx: cannot read {e.filename}: {e.strerror}\n")
        return EXIT_INVALID
    except AclError as e:
        sys.stderr.write(f"aclx: {e}\n")
        return EXIT_INVALID
    return int(rc)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
