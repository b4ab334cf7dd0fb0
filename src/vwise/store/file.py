"""Directory-backed store: one file per key."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class FileStore:
    """Each key maps to ``root/<percent-encoded key>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / (quote(key, safe="") + _SUFFIX)

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        self._path(key).write_bytes(value)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug("Removed %s", path.name)

    def keys(self) -> list[str]:
        """Keys currently on disk (diagnostics only; repositories never call this)."""
        return sorted(unquote(p.name[: -len(_SUFFIX)]) for p in self.root.glob(f"*{_SUFFIX}"))
