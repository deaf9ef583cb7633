"""In-memory cache implementation.

Keeps entries in a dict for the lifetime of the process. No I/O.
"""

import json
import logging
import math
from typing import Any

from newton_cache.models.common import _now_ms
from newton_cache.models.model_entry import CacheEntry
from newton_cache.storage.cache.base import Cache, expires_at_for, is_counter_value

logger = logging.getLogger(__name__)


class MemoryCache(Cache):
    """Process-local cache with TTL support.

    Entries are keyed by the literal cache key. Data is lost when the
    process exits.
    """

    def __init__(self) -> None:
        self._store: dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._store.get(key)
        if entry is None:
            return self._resolve_default(default)

        if entry.is_expired():
            logger.debug(f"Cache expired for key={key}")
            del self._store[key]
            return self._resolve_default(default)
        return entry.value

    def pull(self, key: str, default: Any = None) -> Any:
        entry = self._store.pop(key, None)
        if entry is None or entry.is_expired():
            return self._resolve_default(default)
        return entry.value

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._store[key] = CacheEntry(
            value=value,
            expires_at=expires_at_for(ttl),
            original_key=key,
        )

    def forget(self, key: str) -> bool:
        if key not in self._store:
            return False
        del self._store[key]
        return True

    def flush(self) -> None:
        logger.info(f"Flushed {len(self._store)} in-memory entries")
        self._store.clear()

    def has(self, key: str) -> bool:
        entry = self._store.get(key)
        if entry is None:
            return False

        if entry.is_expired():
            del self._store[key]
            return False
        return True

    def keys(self) -> list[str]:
        now = _now_ms()
        valid = []
        for key, entry in list(self._store.items()):
            if entry.is_expired(now):
                del self._store[key]
                continue
            valid.append(key)
        return valid

    def size(self) -> int:
        """Approximate footprint: JSON-encoded byte length of every entry."""
        total = 0
        for key, entry in self._store.items():
            try:
                total += len(json.dumps(entry.to_payload()).encode("utf-8"))
            except (TypeError, ValueError) as e:
                logger.debug(f"Skipping unserializable entry key={key}: {e}")
        return total

    def prune(self) -> int:
        now = _now_ms()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.info(f"Pruned {len(expired)} expired in-memory entries")
        return len(expired)

    def ttl(self, key: str) -> int | None:
        entry = self._store.get(key)
        if entry is None:
            return None

        remaining = entry.remaining_ms()
        if remaining is None:
            return None
        if remaining <= 0:
            del self._store[key]
            return None
        return math.ceil(remaining / 1000)

    def touch(self, key: str, ttl: float | None) -> bool:
        entry = self._store.get(key)
        if entry is None:
            return False

        if entry.is_expired():
            del self._store[key]
            return False

        self._store[key] = entry.model_copy(update={"expires_at": expires_at_for(ttl)})
        return True

    def increment(self, key: str, amount: float = 1) -> float:
        entry = self._store.get(key)
        current: float = 0
        expires_at = None

        if entry is not None and not entry.is_expired():
            if is_counter_value(entry.value):
                current = entry.value
            expires_at = entry.expires_at

        new_value = current + amount
        self._store[key] = CacheEntry(value=new_value, expires_at=expires_at, original_key=key)
        return new_value


def main() -> None:
    """Example usage of MemoryCache."""
    import time

    logging.basicConfig(level=logging.DEBUG)

    cache = MemoryCache()

    print("=== MemoryCache Example ===\n")

    print("1. Storing values...")
    cache.put("user:123", {"name": "Alice", "email": "alice@example.com"})
    cache.put("session:abc", {"user_id": 123}, 1)
    print(f"   user:123 = {cache.get('user:123')}")
    print(f"   session:abc ttl = {cache.ttl('session:abc')}s")

    print("\n2. Defaults and factories on a miss...")
    print(f"   missing with default = {cache.get('missing', 'fallback')}")
    print(f"   missing with factory = {cache.get('missing', lambda: 'computed')}")

    print("\n3. Remember pattern...")
    calls = []
    for _ in range(3):
        cache.remember("expensive", 60, lambda: calls.append(1) or "result")
    print(f"   Factory called {len(calls)} time(s)")

    print("\n4. Counters...")
    cache.increment("page-views")
    cache.increment("page-views", 10)
    print(f"   page-views = {cache.decrement('page-views', 2)}")

    print("\n5. Expiry...")
    time.sleep(1.1)
    print(f"   session:abc after 1.1s = {cache.get('session:abc', 'GONE')}")
    print(f"   keys = {cache.keys()}, size = {cache.size()} bytes")


if __name__ == "__main__":
    main()
