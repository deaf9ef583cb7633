"""newton-cache: key-value cache with memory, per-key file and flat-file adapters."""

from newton_cache.models.model_entry import CacheEntry, DefaultFactory, DefaultValue
from newton_cache.storage import Cache, FileCache, FlatFileCache, MemoryCache

__all__ = [
    "Cache",
    "CacheEntry",
    "DefaultFactory",
    "DefaultValue",
    "FileCache",
    "FlatFileCache",
    "MemoryCache",
]
