import asyncio
import time
from typing import Any, Dict, Optional, Tuple


class TTLCache:
    """Process-local cache with per-entry expiry."""

    def __init__(self, max_entries: int = 2048):
        # key -> (value, expires_at)
        self._store: Dict[str, Tuple[Any, float]] = {}
        self._lock = asyncio.Lock()
        self._max_entries = max(1, int(max_entries))

    async def get(self, key: str) -> Optional[Any]:
        now = time.time()
        async with self._lock:
            item = self._store.get(key)
            if not item:
                return None
            value, exp = item
            if exp < now:
                self._store.pop(key, None)
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ttl = int(ttl_seconds)
        if ttl <= 0:
            return
        now = time.time()
        async with self._lock:
            if len(self._store) >= self._max_entries and key not in self._store:
                self._evict(now)
            self._store[key] = (value, now + ttl)

    async def delete_prefix(self, prefix: str) -> int:
        async with self._lock:
            keys = [k for k in self._store.keys() if k.startswith(prefix)]
            for k in keys:
                self._store.pop(k, None)
            return len(keys)

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()

    def _evict(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._store.items() if exp < now]
        for k in expired:
            self._store.pop(k, None)
        if len(self._store) >= self._max_entries:
            # drop the entry closest to expiry
            oldest = min(self._store, key=lambda k: self._store[k][1])
            self._store.pop(oldest, None)


cache = TTLCache()
