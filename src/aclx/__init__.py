from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .core.engine import Acl, RuleBuilder
from .core.errors import AclError, DeserializationError, InvalidArgument
from .core.model import Decision, Rule

_FALLBACK_VERSION = "0.1.0"


def _detect_version() -> str:
    try:
        return version("aclx")
    except PackageNotFoundError:
        return _FALLBACK_VERSION


__version__ = _detect_version()

__all__ = [
    "Acl",
    "RuleBuilder",
    "Rule",
    "Decision",
    "AclError",
    "InvalidArgument",
    "DeserializationError",
    "__version__",
]
