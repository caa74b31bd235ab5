"""
In-memory session store with TTL

Live assessment sessions are never persisted; an idle session expires
like an abandoned browser tab.
"""
import time
from typing import Any, Dict, List, Optional, Tuple
from threading import Lock

from app.core.config import get_session_ttl


class TTLCache:
    """
    Thread-safe in-memory cache with sliding TTL (Time To Live)

    Reading a live entry extends its expiry.
    """
    def __init__(self, ttl_seconds: int = 3600):
        self.ttl = ttl_seconds
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""
        with self._lock:
            if key in self._cache:
                value, expiry = self._cache[key]
                now = time.time()
                if now < expiry:
                    self._cache[key] = (value, now + self.ttl)
                    return value
                else:
                    # Expired, remove it
                    del self._cache[key]
            return None

    def set(self, key: str, value: Any):
        """Set value in cache with TTL"""
        with self._lock:
            expiry = time.time() + self.ttl
            self._cache[key] = (value, expiry)

    def invalidate(self, key: str):
        """Remove key from cache"""
        with self._lock:
            if key in self._cache:
                del self._cache[key]

    def purge_expired(self) -> int:
        """Drop expired entries, return how many were removed"""
        with self._lock:
            now = time.time()
            expired = [key for key, (_, expiry) in self._cache.items() if expiry <= now]
            for key in expired:
                del self._cache[key]
            return len(expired)

    def values(self, include_expired: bool = False) -> List[Any]:
        """Snapshot of values without extending expiry (live only unless include_expired)"""
        with self._lock:
            now = time.time()
            return [value for value, expiry in self._cache.values() if include_expired or now < expiry]

    def clear(self):
        """Clear all cache entries"""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


# Global session store
_session_store = TTLCache(ttl_seconds=get_session_ttl())


def get_session_store() -> TTLCache:
    return _session_store
