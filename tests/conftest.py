"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from newton_cache.storage.cache.base import Cache
from newton_cache.storage.cache.file_caching import FileCache
from newton_cache.storage.cache.flat_file_caching import FlatFileCache
from newton_cache.storage.cache.memory_caching import MemoryCache


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_cache() -> MemoryCache:
    """Create an empty MemoryCache."""
    return MemoryCache()


@pytest.fixture
def file_cache(temp_dir: Path) -> FileCache:
    """Create a FileCache in a temporary directory."""
    return FileCache(cache_dir=temp_dir / "cache")


@pytest.fixture
def flat_file_path(temp_dir: Path) -> Path:
    """Path for a flat cache document inside the temporary directory."""
    return temp_dir / "cache.json"


@pytest.fixture
def flat_file_cache(flat_file_path: Path) -> FlatFileCache:
    """Create a FlatFileCache backed by a temporary file."""
    return FlatFileCache(file_path=flat_file_path)


@pytest.fixture(params=["memory", "file", "flat_file"])
def cache(request, temp_dir: Path) -> Cache:
    """Each adapter in turn, for behaviour every adapter must share."""
    if request.param == "memory":
        return MemoryCache()
    if request.param == "file":
        return FileCache(cache_dir=temp_dir / "cache")
    return FlatFileCache(file_path=temp_dir / "cache.json")
