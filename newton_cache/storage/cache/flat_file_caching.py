"""Flat-file cache implementation.

Stores the whole cache as one JSON object keyed by cache key. The document
is loaded into memory on first access and rewritten atomically (temp file +
rename) after every mutation.
"""

import json
import logging
import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from newton_cache.consts import DEFAULT_CACHE_FILE, TEMP_SUFFIX
from newton_cache.models.common import _now_ms
from newton_cache.models.model_entry import CacheEntry, PersistOutcome
from newton_cache.storage.cache.base import Cache, expires_at_for, is_counter_value

logger = logging.getLogger(__name__)


class FlatFileCache(Cache):
    """Single-document cache with an in-memory mirror.

    Suited to small caches where one file is easier to back up than a
    directory of entries. Each write rewrites the entire document, so
    write-heavy workloads should prefer FileCache.

    The mirror is loaded once per instance. If persisting fails the mirror
    stays authoritative for the rest of the process.

    File layout:
        {file_path}          # {"key": {"value": ..., "expiresAt"?: ms, "key": "key"}, ...}
        {file_path}.tmp      # transient, renamed over {file_path} on save
    """

    def __init__(self, file_path: Path | str | None = None):
        """Initialize FlatFileCache. Nothing is read until first use.

        Args:
            file_path: Path to the cache document. Defaults to {tempdir}/newton-cache.json.
        """
        if file_path is None:
            file_path = DEFAULT_CACHE_FILE
        self.file_path = Path(file_path).resolve()
        self._store: dict[str, CacheEntry] = {}
        self._loaded = False
        self._removed_on_load = 0

    @property
    def _temp_path(self) -> Path:
        return self.file_path.with_name(self.file_path.name + TEMP_SUFFIX)

    def _load_from_disk(self) -> None:
        """Populate the mirror from disk on first call; later calls are no-ops.

        Invalid, valueless and expired records are dropped and counted for
        the next prune(). The file is rewritten if anything was dropped.
        """
        if self._loaded:
            return
        self._loaded = True
        self._store.clear()
        self._removed_on_load = 0

        if not self.file_path.exists():
            return

        try:
            content = self.file_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read cache file {self.file_path}: {e}")
            return
        except UnicodeDecodeError as e:
            logger.warning(f"Cache file {self.file_path} is not UTF-8, starting empty: {e}")
            self._save_to_disk()
            return

        if not content.strip():
            return

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Cache file {self.file_path} is corrupt, starting empty: {e}")
            self._save_to_disk()
            return

        if not isinstance(document, dict):
            logger.warning(f"Cache file {self.file_path} is not a JSON object, starting empty")
            self._save_to_disk()
            return

        now = _now_ms()
        for key, record in document.items():
            try:
                entry = CacheEntry.model_validate(record)
            except ValidationError:
                self._removed_on_load += 1
                continue

            if entry.is_expired(now):
                self._removed_on_load += 1
                continue

            if entry.original_key is None:
                entry = entry.model_copy(update={"original_key": key})
            self._store[key] = entry

        logger.debug(
            f"Loaded {len(self._store)} entries from {self.file_path} "
            f"(dropped {self._removed_on_load})"
        )
        if self._removed_on_load:
            self._save_to_disk()

    def _save_to_disk(self) -> PersistOutcome:
        """Serialize the mirror to a temp file and rename it over the target."""
        payload = {key: entry.to_payload() for key, entry in self._store.items()}
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._temp_path.write_text(json.dumps(payload, default=str), encoding="utf-8")
            self._temp_path.replace(self.file_path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist cache file {self.file_path}: {e}")
            return PersistOutcome.FAILED
        return PersistOutcome.SUCCEEDED

    def _expire(self, key: str) -> None:
        """Drop an expired entry from the mirror and persist."""
        logger.debug(f"Cache expired for key={key}")
        del self._store[key]
        self._save_to_disk()

    def get(self, key: str, default: Any = None) -> Any:
        self._load_from_disk()
        entry = self._store.get(key)
        if entry is None:
            return self._resolve_default(default)

        if entry.is_expired():
            self._expire(key)
            return self._resolve_default(default)
        return entry.value

    def pull(self, key: str, default: Any = None) -> Any:
        self._load_from_disk()
        entry = self._store.pop(key, None)
        if entry is None:
            return self._resolve_default(default)

        self._save_to_disk()
        if entry.is_expired():
            return self._resolve_default(default)
        return entry.value

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value. Every call rewrites the whole document."""
        self._load_from_disk()
        self._store[key] = CacheEntry(
            value=value,
            expires_at=expires_at_for(ttl),
            original_key=key,
        )
        self._save_to_disk()

    def forget(self, key: str) -> bool:
        self._load_from_disk()
        if key not in self._store:
            return False
        del self._store[key]
        self._save_to_disk()
        return True

    def flush(self) -> None:
        """Clear the mirror and delete the cache file outright."""
        self._loaded = True
        self._store.clear()
        self._removed_on_load = 0
        try:
            self.file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete cache file {self.file_path}: {e}")
        logger.info(f"Flushed cache file {self.file_path}")

    def has(self, key: str) -> bool:
        self._load_from_disk()
        entry = self._store.get(key)
        if entry is None:
            return False

        if entry.is_expired():
            self._expire(key)
            return False
        return True

    def keys(self) -> list[str]:
        self._load_from_disk()
        now = _now_ms()
        valid = []
        changed = False
        for key, entry in list(self._store.items()):
            if entry.is_expired(now):
                del self._store[key]
                changed = True
                continue
            valid.append(key)

        if changed:
            self._save_to_disk()
        return valid

    def size(self) -> int:
        """Size of the cache file in bytes, 0 if it does not exist."""
        self._load_from_disk()
        try:
            return self.file_path.stat().st_size
        except OSError:
            return 0

    def prune(self) -> int:
        """Remove expired entries, including those dropped when loading."""
        self._load_from_disk()
        removed = self._removed_on_load
        self._removed_on_load = 0

        now = _now_ms()
        for key, entry in list(self._store.items()):
            if entry.is_expired(now):
                del self._store[key]
                removed += 1

        if removed:
            self._save_to_disk()
            logger.info(f"Pruned {removed} entries from {self.file_path}")
        return removed

    def ttl(self, key: str) -> int | None:
        self._load_from_disk()
        entry = self._store.get(key)
        if entry is None:
            return None

        remaining = entry.remaining_ms()
        if remaining is None:
            return None
        if remaining <= 0:
            self._expire(key)
            return None
        return math.ceil(remaining / 1000)

    def touch(self, key: str, ttl: float | None) -> bool:
        self._load_from_disk()
        entry = self._store.get(key)
        if entry is None:
            return False

        if entry.is_expired():
            self._expire(key)
            return False

        self._store[key] = entry.model_copy(
            update={"expires_at": expires_at_for(ttl), "original_key": entry.original_key or key}
        )
        self._save_to_disk()
        return True

    def increment(self, key: str, amount: float = 1) -> float:
        self._load_from_disk()
        entry = self._store.get(key)
        current: float = 0
        expires_at = None

        if entry is not None and not entry.is_expired():
            if is_counter_value(entry.value):
                current = entry.value
            expires_at = entry.expires_at

        new_value = current + amount
        self._store[key] = CacheEntry(value=new_value, expires_at=expires_at, original_key=key)
        self._save_to_disk()
        return new_value

    # === BATCH OPERATIONS ===
    # Overridden so a batch costs one rewrite instead of one per key

    def put_many(self, values: Mapping[str, Any], ttl: float | None = None) -> None:
        self._load_from_disk()
        expires_at = expires_at_for(ttl)
        for key, value in values.items():
            self._store[key] = CacheEntry(value=value, expires_at=expires_at, original_key=key)
        self._save_to_disk()

    def forget_many(self, keys: Iterable[str]) -> int:
        self._load_from_disk()
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
        if removed:
            self._save_to_disk()
        return removed


def main() -> None:
    """Example usage of FlatFileCache."""
    import tempfile

    logging.basicConfig(level=logging.DEBUG)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "cache.json"

        print("=== FlatFileCache Example ===\n")

        print("1. Writing with the first instance...")
        cache = FlatFileCache(file_path=path)
        cache.put("config", {"theme": "dark"})
        cache.put("session:abc", {"user_id": 1}, 3600)
        cache.increment("visits", 5)
        print(f"   File contents: {path.read_text()}")

        print("\n2. Reading with a fresh instance...")
        reopened = FlatFileCache(file_path=path)
        print(f"   config = {reopened.get('config')}")
        print(f"   session:abc ttl = {reopened.ttl('session:abc')}s")
        print(f"   visits = {reopened.get('visits')}")

        print("\n3. TTL management...")
        reopened.touch("session:abc", 60)
        print(f"   session:abc ttl after touch = {reopened.ttl('session:abc')}s")
        reopened.touch("session:abc", float("inf"))
        print(f"   session:abc ttl after touch(inf) = {reopened.ttl('session:abc')}")

        print("\n4. One-time read...")
        print(f"   pull(config) = {reopened.pull('config')}")
        print(f"   has(config) = {reopened.has('config')}")

        print(f"\n5. Size: {reopened.size()} bytes, keys: {reopened.keys()}")
        reopened.flush()
        print(f"   File exists after flush: {path.exists()}")


if __name__ == "__main__":
    main()
