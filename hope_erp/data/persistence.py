"""Local key-value storage.

Plays the part of the browser's local storage: small string values kept
under string keys, surviving restarts. Everything lives in ~/.hope_erp/.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, List, Optional


def get_data_dir() -> Path:
    """Get user-persistent data directory.

    Returns ~/.hope_erp/ by default, or HOPE_ERP_DATA_DIR env var.
    Creates the storage subdirectory if it does not exist.
    """
    data_dir = Path(os.environ.get("HOPE_ERP_DATA_DIR", Path.home() / ".hope_erp"))

    (data_dir / "storage").mkdir(parents=True, exist_ok=True)

    return data_dir


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _key_to_filename(key: str) -> str:
    return _UNSAFE_CHARS.sub("_", key) + ".json"


class KeyValueStore:
    """File-backed string store, one file per key.

    Writes are synchronous. I/O errors propagate to the caller as OSError.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = data_dir or get_data_dir()
        self.storage_dir = self.data_dir / "storage"
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.storage_dir / _key_to_filename(key)

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        """List stored keys (as their sanitised file stems)."""
        return sorted(f.stem for f in self.storage_dir.glob("*.json"))

    def clear(self) -> None:
        for path in self.storage_dir.glob("*.json"):
            path.unlink()


class MemoryStore:
    """In-memory store with the same interface as KeyValueStore."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)

    def clear(self) -> None:
        self._items.clear()
