"""Cache adapters sharing the Cache contract."""

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
