"""
Client-local key-value storage.

Holds small JSON blobs on the admin's machine (recent searches). The store
is injected so tests can swap the file for memory.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Persistent mapping of string keys to JSON-serializable values."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get a value, None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value under a key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store. Values are copied through JSON like on disk."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a single JSON file.

    Writes go through a temporary file and an atomic rename so a crash never
    leaves a truncated file behind. A corrupt file reads as empty.
    """

    def __init__(self, path: Path) -> None:
        """
        Initialize the store.

        Args:
            path: JSON file location; parent directories are created on write.
        """
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return False
        del data[key]
        self._dump(data)
        return True

    def _load(self) -> dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "Unreadable local store, starting empty",
                path=str(self._path),
                error=str(e),
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=".", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
