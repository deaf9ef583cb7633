"""Pydantic models and tagged types for newton-cache."""

from newton_cache.models.model_entry import (
    CacheEntry,
    Default,
    DefaultFactory,
    DefaultValue,
    Err,
    FactoryResult,
    Ok,
    PersistOutcome,
    as_default,
)

__all__ = [
    "CacheEntry",
    "Default",
    "DefaultFactory",
    "DefaultValue",
    "Err",
    "FactoryResult",
    "Ok",
    "PersistOutcome",
    "as_default",
]
