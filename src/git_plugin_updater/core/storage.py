"""Key-value storage backends for the update cache snapshot."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; values expire after their ttl."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at is not None and self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileStore:
    """One JSON file per key under ``cache_dir``, written atomically.

    Values must be JSON-serializable. Unreadable or corrupt files are treated
    as a miss and removed.
    """

    def __init__(self, cache_dir: Path, clock: Callable[[], float] = time.time):
        self.cache_dir = Path(cache_dir)
        self._clock = clock
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.cache_dir / f"{safe}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with self._lock:
                record = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Discarding unreadable cache file %s", path, exc_info=True)
            self._remove(path)
            return None

        if not isinstance(record, dict) or "value" not in record:
            self._remove(path)
            return None
        expires_at = record.get("expires_at")
        if isinstance(expires_at, (int, float)) and self._clock() >= expires_at:
            self._remove(path)
            return None
        return record["value"]

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        path = self._path(key)
        record = {
            "value": value,
            "expires_at": self._clock() + ttl if ttl is not None else None,
        }
        payload = json.dumps(record, indent=2)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp, path)
            except OSError:
                self._remove(Path(tmp))
                raise

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(self._path(key))

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.debug("Could not remove %s", path, exc_info=True)
