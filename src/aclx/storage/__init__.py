from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from typing import Any, Optional, Tuple

from ..core.engine import Acl
from ..core.errors import DeserializationError
from ..core.serialization import rules_from_data

logger = logging.getLogger("aclx.storage")

_YAML_SUFFIXES = (".yaml", ".yml")


def atomic_write(path: str, data: str, *, encoding: str = "utf-8") -> None:
    """Write data atomically to *path*.

    Uses a temporary file in the same directory followed by os.replace().
    """
    directory = os.path.dirname(path) or "."
    fd, tmp = tempfile.mkstemp(prefix=".aclx.tmp.", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


def detect_format(path: str, fmt: Optional[str] = None) -> str:
    if fmt:
        fmt = fmt.lower()
        if fmt not in ("json", "yaml"):
            raise ValueError(f"unsupported rules format: {fmt!r}")
        return fmt
    return "yaml" if path.lower().endswith(_YAML_SUFFIXES) else "json"


class FileRuleSource:
    """
    Rule list persisted in a local JSON or YAML file.

    Both formats hold the same list of ``{"resource": "/.../", "actions": [...],
    "roles": [...]}`` records. Loading and saving are caller-driven; the
    ETag (SHA-256 of the content, cached by size and mtime) lets callers
    skip re-reading an unchanged file.
    """

    def __init__(self, path: str, *, fmt: Optional[str] = None, chunk_size: int = 512 * 1024) -> None:
        self.path = path
        self.fmt = detect_format(path, fmt)
        self._chunk_size = int(chunk_size)

        self._cached_stat_sig: Optional[Tuple[int, int]] = None  # (size, mtime_ns)
        self._cached_sha: Optional[str] = None

    # --- helpers -------------------------------------------------------------

    def _stat_sig(self) -> Tuple[int, int]:
        st = os.stat(self.path)
        return (st.st_size, st.st_mtime_ns)

    def _hash_file(self) -> str:
        h = hashlib.sha256()
        with open(self.path, "rb") as f:
            for chunk in iter(lambda: f.read(self._chunk_size), b""):
                h.update(chunk)
        return h.hexdigest()

    def _parse_yaml(self, text: str) -> Any:
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as e:  # pragma: no cover
            raise RuntimeError("PyYAML is required to read YAML rule files (pip install aclx[yaml])") from e
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DeserializationError(f"rules are not valid YAML: {e}") from e

    def _dump_yaml(self, acl: Acl) -> str:
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as e:  # pragma: no cover
            raise RuntimeError("PyYAML is required to write YAML rule files (pip install aclx[yaml])") from e
        return yaml.safe_dump(acl.to_data(), sort_keys=False, allow_unicode=True)

    # --- public API ----------------------------------------------------------

    def etag(self) -> Optional[str]:
        try:
            sig = self._stat_sig()
        except FileNotFoundError:
            self._cached_stat_sig = None
            self._cached_sha = None
            return None

        if self._cached_stat_sig != sig or self._cached_sha is None:
            self._cached_sha = self._hash_file()
            self._cached_stat_sig = sig
        return self._cached_sha

    def read(self) -> str:
        with open(self.path, "rb") as f:
            raw = f.read()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(f"{self.path} is not valid UTF-8: {e}") from e

    def load_into(self, acl: Acl) -> int:
        """Replace *acl*'s rules with the file content; returns the rule count."""
        text = self.read()
        if self.fmt == "yaml":
            acl.load_rules(rules_from_data(self._parse_yaml(text)))
        else:
            acl.from_json(text)
        logger.info("aclx: loaded %d rules from %s", len(acl), self.path)
        return len(acl)

    def save(self, acl: Acl) -> None:
        if self.fmt == "yaml":
            data = self._dump_yaml(acl)
        else:
            data = acl.to_json(indent=2)
        atomic_write(self.path, data)
        logger.info("aclx: saved %d rules to %s", len(acl), self.path)


__all__ = ["atomic_write", "detect_format", "FileRuleSource"]
