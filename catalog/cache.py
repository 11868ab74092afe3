"""TTL key-value stores used to hold the scraped catalog credential."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Protocol

from config.settings import TOKEN_CACHE_PATH

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCache:
    """Process-local store; expired rows are dropped on read."""

    def __init__(self, clock=time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> Any:
        now = self._clock()
        with self._lock:
            row = self._data.get(key)
            if row is None:
                return None
            if row["expires_at"] <= now:
                self._data.pop(key, None)
                return None
            return row["value"]

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = {
                "expires_at": self._clock() + max(1, int(ttl_seconds)),
                "value": value,
            }

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileCache:
    """Store persisted to a JSON file so several worker processes share one token."""

    def __init__(self, cache_path: str | Path, clock=time.time) -> None:
        self._path = Path(cache_path)
        self._clock = clock
        self._lock = threading.Lock()

    def _load_locked(self) -> dict[str, dict[str, Any]]:
        try:
            if self._path.exists():
                payload = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(payload, dict):
                    return payload
        except (OSError, ValueError):
            logger.warning("[CACHE] unreadable cache file %s; starting empty", self._path)
        return {}

    def _persist_locked(self, data: dict[str, dict[str, Any]]) -> None:
        # Each write gets its own temp file; other processes may be replacing the same path.
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(data, handle, ensure_ascii=True, separators=(",", ":"))
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.warning("[CACHE] could not write cache file %s: %s", self._path, exc)
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def get(self, key: str) -> Any:
        now = self._clock()
        with self._lock:
            data = self._load_locked()
            row = data.get(key)
            if not isinstance(row, dict):
                return None
            expires_at = float(row.get("expires_at") or 0.0)
            if expires_at <= now:
                data.pop(key, None)
                self._persist_locked(data)
                return None
            return row.get("value")

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            data = self._load_locked()
            data[key] = {
                "expires_at": self._clock() + max(1, int(ttl_seconds)),
                "value": value,
            }
            self._persist_locked(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load_locked()
            if data.pop(key, None) is not None:
                self._persist_locked(data)


def build_cache(cache_path: str | None = TOKEN_CACHE_PATH) -> CacheStore:
    if cache_path:
        logger.info("[CACHE] using file store path=%s", cache_path)
        return JsonFileCache(cache_path)
    return MemoryCache()
