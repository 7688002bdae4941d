from __future__ import annotations


class AclError(Exception):
    """Base class for all aclx errors."""


class InvalidArgument(AclError, TypeError):
    """Raised when a rule is built or a check is made with arguments of the wrong type."""


class DeserializationError(AclError, ValueError):
    """Raised when serialized rules cannot be parsed back into a rule store."""


__all__ = ["AclError", "InvalidArgument", "DeserializationError"]
