"""File-based cache implementation.

Stores each cache entry as its own JSON file inside one directory.
Supports optional TTL (time-to-live) for automatic expiration.
"""

import hashlib
import json
import logging
import math
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from pydantic import ValidationError

from newton_cache.consts import (
    DEFAULT_CACHE_DIR,
    FILENAME_SAFE_CHARS,
    LONG_KEY_PREFIX,
    MAX_KEY_LENGTH,
)
from newton_cache.models.model_entry import CacheEntry, PersistOutcome
from newton_cache.storage.cache.base import Cache, expires_at_for, is_counter_value

logger = logging.getLogger(__name__)

# Longest filename most filesystems accept, in bytes
_MAX_FILENAME_BYTES = 255


class FileCache(Cache):
    """File-based cache implementation with TTL support.

    Each entry is a JSON record {value, expiresAt?, key} in its own file.
    Writes replace the whole file in one call; a crash mid-write can only
    corrupt that single key, which later reads treat as a miss.

    Directory structure:
        {cache_dir}/
        ├── {percent-encoded key}
        ├── {percent-encoded key}
        └── long_{sha256 hex}        # keys longer than 200 characters
    """

    def __init__(self, cache_dir: Path | str | None = None):
        """Initialize FileCache.

        Args:
            cache_dir: Directory for cache files. Defaults to {tempdir}/node-cache.

        Raises:
            OSError: If the directory cannot be created.
        """
        if cache_dir is None:
            cache_dir = DEFAULT_CACHE_DIR
        self.cache_dir = Path(cache_dir).resolve()
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _filename_for_key(self, key: str) -> str:
        """Map a key to a safe filename.

        Short keys are percent-encoded and stay reversible. Keys that would
        not make a usable filename (empty, too long or too wide once encoded)
        are hashed.
        """
        if key and len(key) <= MAX_KEY_LENGTH:
            filename = quote(key, safe=FILENAME_SAFE_CHARS)
            if filename in (".", ".."):
                return filename.replace(".", "%2E")
            if len(filename.encode("utf-8")) <= _MAX_FILENAME_BYTES:
                return filename
        return f"{LONG_KEY_PREFIX}{hashlib.sha256(key.encode('utf-8')).hexdigest()}"

    def _cache_path(self, key: str) -> Path:
        """Get the file path for a cached entry."""
        return self.cache_dir / self._filename_for_key(key)

    def _entry_files(self) -> list[Path]:
        """List entry files, or nothing if the directory is unreadable."""
        try:
            return [path for path in self.cache_dir.iterdir() if path.is_file()]
        except OSError as e:
            logger.warning(f"Failed to list cache directory {self.cache_dir}: {e}")
            return []

    def _read_entry(self, path: Path) -> CacheEntry | None:
        """Read and validate an entry file. None if unreadable or malformed."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to read cache entry {path.name}: {e}")
            return None

    def _write_entry(self, path: Path, entry: CacheEntry) -> PersistOutcome:
        """Write the full entry record in a single call."""
        try:
            path.write_text(
                json.dumps(entry.to_payload(), indent=2, default=str),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write cache entry {path.name}: {e}")
            return PersistOutcome.FAILED
        return PersistOutcome.SUCCEEDED

    def _remove_file(self, path: Path) -> PersistOutcome:
        """Delete an entry file, tolerating concurrent removal."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove cache entry {path.name}: {e}")
            return PersistOutcome.FAILED
        return PersistOutcome.SUCCEEDED

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the cache.

        Args:
            key: Cache key.
            default: Literal or zero-argument factory used on a miss.

        Returns:
            Cached value if found and not expired, the resolved default otherwise.
        """
        path = self._cache_path(key)
        if not path.exists():
            return self._resolve_default(default)

        entry = self._read_entry(path)
        if entry is None:
            return self._resolve_default(default)

        if entry.is_expired():
            logger.debug(f"Cache expired for key={key}")
            self._remove_file(path)
            return self._resolve_default(default)
        return entry.value

    def pull(self, key: str, default: Any = None) -> Any:
        """Get a value and delete its file, including unreadable or expired ones."""
        path = self._cache_path(key)
        if not path.exists():
            return self._resolve_default(default)

        entry = self._read_entry(path)
        self._remove_file(path)
        if entry is None or entry.is_expired():
            return self._resolve_default(default)
        return entry.value

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value in the cache.

        Args:
            key: Cache key.
            value: Value to cache (must be JSON-serializable; other objects are
                stored via str()).
            ttl: Time-to-live in seconds. None or inf means no expiration.
        """
        entry = CacheEntry(value=value, expires_at=expires_at_for(ttl), original_key=key)
        if self._write_entry(self._cache_path(key), entry) is PersistOutcome.SUCCEEDED:
            logger.debug(f"Cached key={key} (expires_at={entry.expires_at})")

    def forget(self, key: str) -> bool:
        """Delete a cache file.

        Returns:
            True if the file existed and was deleted, False otherwise.
        """
        path = self._cache_path(key)
        if not path.exists():
            return False
        return self._remove_file(path) is PersistOutcome.SUCCEEDED

    def flush(self) -> None:
        """Delete every file in the cache directory."""
        count = 0
        for path in self._entry_files():
            if self._remove_file(path) is PersistOutcome.SUCCEEDED:
                count += 1
        logger.info(f"Flushed {count} entries from {self.cache_dir}")

    def has(self, key: str) -> bool:
        """Check if a key exists and is not expired. Removes expired files."""
        path = self._cache_path(key)
        if not path.exists():
            return False

        entry = self._read_entry(path)
        if entry is None:
            return False

        if entry.is_expired():
            self._remove_file(path)
            return False
        return True

    def keys(self) -> list[str]:
        """List original keys (not filenames) of unexpired entries.

        Expired files are deleted during the scan; unreadable ones are skipped.
        """
        keys = []
        for path in self._entry_files():
            entry = self._read_entry(path)
            if entry is None:
                continue

            if entry.is_expired():
                self._remove_file(path)
                continue
            keys.append(entry.original_key if entry.original_key is not None else unquote(path.name))
        return keys

    def size(self) -> int:
        """Total bytes of all cache files, expired or not."""
        total = 0
        for path in self._entry_files():
            try:
                total += path.stat().st_size
            except OSError:
                continue
        return total

    def prune(self) -> int:
        """Delete expired and unreadable cache files.

        Returns:
            Number of files removed.
        """
        removed = 0
        for path in self._entry_files():
            entry = self._read_entry(path)
            if entry is not None and not entry.is_expired():
                continue
            if self._remove_file(path) is PersistOutcome.SUCCEEDED:
                removed += 1

        if removed:
            logger.info(f"Pruned {removed} entries from {self.cache_dir}")
        return removed

    def ttl(self, key: str) -> int | None:
        """Remaining seconds before a key expires, rounded up."""
        path = self._cache_path(key)
        if not path.exists():
            return None

        entry = self._read_entry(path)
        if entry is None:
            return None

        remaining = entry.remaining_ms()
        if remaining is None:
            return None
        if remaining <= 0:
            self._remove_file(path)
            return None
        return math.ceil(remaining / 1000)

    def touch(self, key: str, ttl: float | None) -> bool:
        """Rewrite only the expiry of an unexpired entry."""
        path = self._cache_path(key)
        if not path.exists():
            return False

        entry = self._read_entry(path)
        if entry is None:
            return False

        if entry.is_expired():
            self._remove_file(path)
            return False

        updated = entry.model_copy(update={"expires_at": expires_at_for(ttl)})
        return self._write_entry(path, updated) is PersistOutcome.SUCCEEDED

    def increment(self, key: str, amount: float = 1) -> float:
        """Add to a numeric value, keeping the expiry of an unexpired entry."""
        path = self._cache_path(key)
        current: float = 0
        expires_at = None
        stored_key = key

        if path.exists():
            entry = self._read_entry(path)
            if entry is not None and not entry.is_expired():
                if is_counter_value(entry.value):
                    current = entry.value
                expires_at = entry.expires_at
                stored_key = entry.original_key or key

        new_value = current + amount
        self._write_entry(
            path,
            CacheEntry(value=new_value, expires_at=expires_at, original_key=stored_key),
        )
        return new_value


def main() -> None:
    """Example usage of FileCache."""
    import tempfile
    import time

    logging.basicConfig(level=logging.DEBUG)

    # Use temporary directory for example
    with tempfile.TemporaryDirectory() as tmpdir:
        cache = FileCache(cache_dir=tmpdir)

        print("=== FileCache Example ===\n")

        # Store some values
        print("1. Storing values in cache...")
        cache.put("user:123", {"name": "Alice", "email": "alice@example.com"})
        cache.put("config:app", {"debug": True, "version": "1.0"})
        cache.put("x" * 300, "long key value")
        print("   Stored 3 values")

        # Retrieve values
        print("\n2. Retrieving values...")
        print(f"   user:123 = {cache.get('user:123')}")
        print(f"   long key = {cache.get('x' * 300)}")

        # List keys
        print("\n3. Listing keys...")
        print(f"   Keys: {[k if len(k) < 40 else k[:20] + '...' for k in cache.keys()]}")
        print(f"   Files: {sorted(p.name[:40] for p in Path(tmpdir).iterdir())}")

        # Batch operations
        print("\n4. Batch operations...")
        cache.put_many({"product:1": {"price": 10}, "product:2": {"price": 20}}, 3600)
        print(f"   get_many = {cache.get_many(['product:1', 'product:2', 'product:3'])}")
        print(f"   forget_many removed {cache.forget_many(['product:1', 'product:3'])}")

        # Store with TTL
        print("\n5. Storing with TTL=1 second...")
        cache.put("temp:data", {"temporary": True}, ttl=1)
        print(f"   temp:data ttl: {cache.ttl('temp:data')}s")

        print("   Waiting 1.5 seconds for expiration...")
        time.sleep(1.5)
        print(f"   temp:data after 1.5s: {cache.get('temp:data', 'GONE')}")

        print(f"\n6. Size: {cache.size()} bytes, pruned: {cache.prune()}")
        cache.flush()
        print(f"   Count after flush: {cache.count()}")


if __name__ == "__main__":
    main()
