"""
On-device key-value store: every key maps to a JSON string kept in one file.
"""

import json
import os
import threading
from typing import Any, Dict, Optional

from ..core.exceptions import PersistenceError


class LocalKeyValueStore:
    """Synchronous key -> JSON-string storage scoped to one file."""

    def __init__(self, path: str = "scorebook_local.json"):
        self._path = path
        self._lock = threading.RLock()
        self._ensure_directory_exists()

    @property
    def path(self) -> str:
        return self._path

    def _ensure_directory_exists(self) -> None:
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read local store {self._path}: {str(e)}")

    def _write_all(self, items: Dict[str, str]) -> None:
        tmp_path = f"{self._path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise PersistenceError(f"Failed to write local store {self._path}: {str(e)}")

    def get_raw(self, key: str) -> Optional[str]:
        """Get the JSON string stored under key."""
        with self._lock:
            return self._read_all().get(key)

    def set_raw(self, key: str, raw: str) -> None:
        """Store a JSON string under key."""
        with self._lock:
            items = self._read_all()
            items[key] = raw
            self._write_all(items)

    def get(self, key: str, default: Any = None) -> Any:
        """Get the decoded value stored under key."""
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            raise PersistenceError(f"Corrupt local value for {key}: {str(e)}")

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value, ensure_ascii=False))

    def delete(self, key: str) -> bool:
        with self._lock:
            items = self._read_all()
            if key not in items:
                return False
            del items[key]
            self._write_all(items)
            return True

    def contains(self, key: str) -> bool:
        return self.get_raw(key) is not None
