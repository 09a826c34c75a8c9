"""Small JSON-file key/value store with per-key expiry."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class TTLStore:
    """Persist values such as credentials and dismissal flags across runs.

    Each entry is stored with an absolute expiry time; expired entries read
    as missing and are dropped on the next write.
    """

    def __init__(self, path, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable store file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _live(self, data: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        now = self._clock()
        return {
            key: entry
            for key, entry in data.items()
            if isinstance(entry, dict) and (entry.get("expires_at") is None or entry["expires_at"] > now)
        }

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live(self._load()).get(key)
        return default if entry is None else entry.get("value", default)

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value``; ``ttl`` is in seconds, ``None`` never expires."""
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            data = self._live(self._load())
            data[key] = {
                "value": value,
                "expires_at": None if ttl is None else self._clock() + ttl,
            }
            self._save(data)

    def delete(self, *keys: str) -> None:
        with self._lock:
            data = self._live(self._load())
            for key in keys:
                data.pop(key, None)
            self._save(data)

    def clear(self) -> None:
        with self._lock:
            self._save({})
