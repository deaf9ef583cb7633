"""Storage backends for cached data.

This module provides:
- Cache: Abstract base class for cache adapters
- MemoryCache: In-process cache with TTL support
- FileCache: One JSON file per key with TTL support
- FlatFileCache: Single JSON document with atomic rewrites
"""

from newton_cache.storage.cache.base import Cache
from newton_cache.storage.cache.file_caching import FileCache
from newton_cache.storage.cache.flat_file_caching import FlatFileCache
from newton_cache.storage.cache.memory_caching import MemoryCache

__all__ = [
    "Cache",
    "FileCache",
    "FlatFileCache",
    "MemoryCache",
]
