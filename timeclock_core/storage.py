"""
KeyValueStore implementations.

The core only needs synchronous get/set/delete. JsonFileStore keeps every
key in one JSON document on disk (rewritten on each change, same approach
as the config file); MemoryStore backs tests and throwaway sessions.
"""

import json
from pathlib import Path
from typing import Any, Optional, Protocol

from .config import log


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def __contains__(self, key):
        return key in self._data


class JsonFileStore:
    """All keys in a single JSON file. Values must be JSON-serializable."""

    def __init__(self, path):
        self._path = Path(path)
        self._data = self._read()

    def _read(self):
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Storage file %s unreadable, starting empty: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Storage file %s is not an object, starting empty", self._path)
            return {}
        return data

    def _flush(self):
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self._flush()

    def delete(self, key):
        if key in self._data:
            del self._data[key]
            self._flush()

    def __contains__(self, key):
        return key in self._data
