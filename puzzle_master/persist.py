"""Key/value persistence for puzzle state."""

from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, Optional


def _write_atomic(path: str, data: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as fh:
        fh.write(data)
    os.replace(tmp, path)


class StateStore:
    """Async get/set contract consumed by ``PuzzleSession.load``/``save``."""

    async def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError


class MemoryStateStore(StateStore):
    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(data or {})

    async def get(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key)
        return default if value is None else value

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonStateStore(StateStore):
    """Persist keys into one JSON object file, rewritten atomically on every set.

    A missing file reads as empty. An unreadable one raises on the first
    ``get`` so the caller can decide how to recover.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, Any]] = None

    def _ensure_loaded(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        if not os.path.exists(self.path):
            self._data = {}
            return self._data
        with open(self.path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
        if not isinstance(raw, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        self._data = raw
        return self._data

    async def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._ensure_loaded().get(key)
        return default if value is None else value

    async def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._ensure_loaded()
            data[key] = value
            payload = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True)
            _write_atomic(self.path, payload)


__all__ = ["JsonStateStore", "MemoryStateStore", "StateStore"]
