"""Abstract base class for cache adapters.

Adapters provide key-value storage with optional TTL (time-to-live) support.
Entries past their expiry are treated as absent and reclaimed when a read
discovers them. Batch operations and the add/remember helpers are implemented
here on top of the primitives, so concrete stores only supply those.
"""

import inspect
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from newton_cache.models.common import _now_ms
from newton_cache.models.model_entry import (
    DefaultFactory,
    DefaultValue,
    Err,
    FactoryResult,
    Ok,
    as_default,
)

logger = logging.getLogger(__name__)

# Marks a miss inside remember(); never stored
_MISSING = object()


def invoke_factory(factory: Callable[[], Any]) -> FactoryResult:
    """Call a default factory, capturing any exception as Err."""
    try:
        return Ok(factory())
    except Exception as e:
        logger.debug(f"Default factory failed: {type(e).__name__}: {e}")
        return Err(e)


def expires_at_for(ttl: float | None) -> int | None:
    """Compute the absolute expiry for a TTL in seconds.

    None, infinite and NaN TTLs mean the entry never expires, as do
    integers too large to convert to a float.
    """
    if ttl is None:
        return None
    try:
        if not math.isfinite(ttl):
            return None
    except OverflowError:
        return None
    return _now_ms() + int(ttl * 1000)


def is_counter_value(value: Any) -> bool:
    """Check whether a stored value can seed increment/decrement."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Cache(ABC):
    """Abstract base class for cache adapters.

    Every adapter honours the same expiry semantics: a TTL of None or
    ``math.inf`` stores forever, expired entries read as misses, and no
    read or write raises because of unreadable storage.
    """

    # === PRIMITIVES ===

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the cache.

        Args:
            key: Cache key.
            default: Literal value or zero-argument factory resolved on a miss.
                A factory that raises resolves to None.

        Returns:
            Cached value if found and not expired, else the resolved default.
        """
        ...

    @abstractmethod
    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value in the cache.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time-to-live in seconds. None, inf or NaN means never expires.
        """
        ...

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a key holds an unexpired value. Reclaims expired entries."""
        ...

    @abstractmethod
    def pull(self, key: str, default: Any = None) -> Any:
        """Get a value and remove the entry, even if it had expired."""
        ...

    @abstractmethod
    def forget(self, key: str) -> bool:
        """Remove an entry.

        Returns:
            True if an entry existed and was removed, False otherwise.
        """
        ...

    @abstractmethod
    def flush(self) -> None:
        """Remove every entry regardless of expiry."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """List unexpired keys, purging expired entries found on the way."""
        ...

    @abstractmethod
    def size(self) -> int:
        """Total storage footprint in bytes."""
        ...

    @abstractmethod
    def prune(self) -> int:
        """Remove expired and structurally invalid entries.

        Returns:
            Number of entries removed.
        """
        ...

    @abstractmethod
    def ttl(self, key: str) -> int | None:
        """Remaining lifetime in whole seconds, rounded up.

        Returns:
            Seconds left, or None if the key is missing or never expires.
        """
        ...

    @abstractmethod
    def touch(self, key: str, ttl: float | None) -> bool:
        """Reset the expiry of an unexpired entry.

        Args:
            key: Cache key.
            ttl: New TTL in seconds from now; inf clears the expiry.

        Returns:
            True if the entry was updated, False if missing or expired.
        """
        ...

    @abstractmethod
    def increment(self, key: str, amount: float = 1) -> float:
        """Add to a numeric value, starting from 0 when missing or non-numeric.

        An unexpired entry keeps its expiry; an expired one restarts at 0
        without expiry.

        Returns:
            The new value.
        """
        ...

    # === DERIVED OPERATIONS ===

    def forever(self, key: str, value: Any) -> None:
        """Store a value without expiry."""
        self.put(key, value)

    def add(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store a value only if the key is not currently present.

        Returns:
            True if the value was stored.
        """
        if self.has(key):
            return False
        self.put(key, value, ttl)
        return True

    def remember(self, key: str, ttl: float | None, factory: Callable[[], Any]) -> Any:
        """Return the cached value, or compute, store and return it.

        Exceptions raised by the factory propagate and nothing is stored.

        Raises:
            TypeError: If the factory returns an awaitable; use aremember().
        """
        existing = self.get(key, DefaultValue(_MISSING))
        if existing is not _MISSING:
            logger.debug(f"remember hit for key={key}")
            return existing

        value = factory()
        if inspect.isawaitable(value):
            if inspect.iscoroutine(value):
                value.close()
            raise TypeError(
                f"remember() got an awaitable for key={key}; use aremember for async factories"
            )
        self.put(key, value, ttl)
        return value

    def remember_forever(self, key: str, factory: Callable[[], Any]) -> Any:
        """remember() without expiry."""
        return self.remember(key, math.inf, factory)

    async def aremember(
        self,
        key: str,
        ttl: float | None,
        factory: Callable[[], Any | Awaitable[Any]],
    ) -> Any:
        """remember() for factories that may be coroutine functions."""
        existing = self.get(key, DefaultValue(_MISSING))
        if existing is not _MISSING:
            logger.debug(f"remember hit for key={key}")
            return existing

        value = factory()
        if inspect.isawaitable(value):
            value = await value
        self.put(key, value, ttl)
        return value

    async def aremember_forever(
        self, key: str, factory: Callable[[], Any | Awaitable[Any]]
    ) -> Any:
        """aremember() without expiry."""
        return await self.aremember(key, math.inf, factory)

    def count(self) -> int:
        """Number of unexpired entries."""
        return len(self.keys())

    def decrement(self, key: str, amount: float = 1) -> float:
        """Subtract from a numeric value; see increment()."""
        return self.increment(key, -amount)

    # === BATCH OPERATIONS ===

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Get several values at once.

        Returns:
            One item per requested key; None for missing or expired keys.
        """
        return {key: self.get(key) for key in keys}

    def put_many(self, values: Mapping[str, Any], ttl: float | None = None) -> None:
        """Store every item of a mapping with the same TTL."""
        for key, value in values.items():
            self.put(key, value, ttl)

    def forget_many(self, keys: Iterable[str]) -> int:
        """Remove several keys.

        Returns:
            Number of entries that existed and were removed.
        """
        return sum(1 for key in keys if self.forget(key))

    # === HELPERS ===

    def _resolve_default(self, default: Any) -> Any:
        """Resolve a miss to the literal default or the factory result."""
        resolved = as_default(default)
        if isinstance(resolved, DefaultFactory):
            result = invoke_factory(resolved.factory)
            if isinstance(result, Err):
                return None
            return result.value
        return resolved.value


def main() -> None:
    """Example demonstrating the Cache interface."""
    print("Cache is an abstract base class.")
    print("Adapters implement the primitives:")
    print("  - get(key, default) / pull(key, default) -> Any")
    print("  - put(key, value, ttl) -> None")
    print("  - has(key) / forget(key) / touch(key, ttl) -> bool")
    print("  - keys() -> list[str], size() / prune() -> int, ttl(key) -> int | None")
    print("  - increment(key, amount) -> number, flush() -> None")
    print("and inherit add, forever, remember, count, decrement and the *_many batch helpers.")
    print("\nSee MemoryCache, FileCache and FlatFileCache for concrete implementations.")


if __name__ == "__main__":
    main()
