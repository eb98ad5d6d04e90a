from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional

from common.types import CacheEntry


log = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KVCache:
    """
    File-backed key/value cache with per-read TTL checks.

        root/
          ├─ user_geo_cache_v1.json   {"timestamp": <epoch s>, "payload": {...}}
          └─ iss_pos_cache_v1.json

    Each write overwrites the entry and stamps it with the current time.
    Reads pass the TTL they care about, so one entry can be "fresh" for one
    caller and "stale" for another. Disk/JSON errors are logged and treated
    as a miss; they never reach the caller.
    """

    def __init__(self, root: str = "runtime/cache", clock: Callable[[], float] = time.time):
        self.root = Path(root)
        self.clock = clock

    # -------- public API --------

    def get_cached(self, key: str, ttl_s: float) -> Optional[Any]:
        """Payload for `key` if younger than `ttl_s` seconds, else None."""
        entry = self.get_entry(key)
        if entry is None:
            return None
        if entry.age_s(self.clock()) < ttl_s:
            return entry.payload
        return None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
            return CacheEntry(timestamp=float(data["timestamp"]), payload=data["payload"])
        except Exception as e:
            log.error("Cache read error", extra={"extra": {"key": key, "error": str(e)}})
            return None

    def set_cached(self, key: str, payload: Any) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # one temp file per write; concurrent writers never share it
            with tempfile.NamedTemporaryFile("w", dir=path.parent, prefix=f"{key}.", suffix=".tmp", delete=False) as f:
                tmp = Path(f.name)
                f.write(json.dumps({"timestamp": self.clock(), "payload": payload}))
            try:
                os.replace(tmp, path)
            finally:
                tmp.unlink(missing_ok=True)
        except Exception as e:
            log.error("Cache write error", extra={"extra": {"key": key, "error": str(e)}})

    def clear(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    # -------- internals --------

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"invalid cache key: {key!r}")
        return self.root / f"{key}.json"
