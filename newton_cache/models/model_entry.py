"""Cache entry and default-resolution models."""

import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newton_cache.models.common import _now_ms

# === Pydantic Models (for serialization/validation) ===


class CacheEntry(BaseModel):
    """A stored value plus its expiry metadata.

    Serialized as ``{"value": ..., "expiresAt"?: int, "key"?: str}``. A record
    without a ``value`` field fails validation and is treated as invalid.
    """

    model_config = ConfigDict(populate_by_name=True)

    value: Any
    expires_at: int | None = Field(
        default=None,
        alias="expiresAt",
        description="Absolute epoch milliseconds; None means never expires",
    )
    original_key: str | None = Field(
        default=None,
        alias="key",
        description="Original cache key, needed when the storage key is hashed",
    )

    @field_validator("expires_at", mode="before")
    @classmethod
    def truncate_fractional_ms(cls, v: Any) -> Any:
        if isinstance(v, float) and math.isfinite(v):
            return int(v)
        return v

    def is_expired(self, now_ms: int | None = None) -> bool:
        """Check whether the entry is past its expiry instant."""
        if self.expires_at is None:
            return False
        now = _now_ms() if now_ms is None else now_ms
        return self.expires_at <= now

    def remaining_ms(self, now_ms: int | None = None) -> int | None:
        """Milliseconds until expiry, or None when the entry never expires."""
        if self.expires_at is None:
            return None
        now = _now_ms() if now_ms is None else now_ms
        return self.expires_at - now

    def to_payload(self) -> dict[str, Any]:
        """Build the on-disk record, omitting unset metadata."""
        payload: dict[str, Any] = {"value": self.value}
        if self.expires_at is not None:
            payload["expiresAt"] = self.expires_at
        if self.original_key is not None:
            payload["key"] = self.original_key
        return payload


# === Enums ===


class PersistOutcome(str, Enum):
    """Result of a write or delete against backing storage."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"  # Logged by the adapter, never raised


# === Dataclasses (lightweight internal types) ===


@dataclass(frozen=True)
class DefaultValue:
    """A literal default returned as-is on a miss."""

    value: Any


@dataclass(frozen=True)
class DefaultFactory:
    """A zero-argument callable invoked lazily on a miss."""

    factory: Callable[[], Any]


Default = DefaultValue | DefaultFactory


@dataclass(frozen=True)
class Ok:
    """Factory completed and produced a value."""

    value: Any


@dataclass(frozen=True)
class Err:
    """Factory raised; the error is kept for logging."""

    error: Exception


FactoryResult = Ok | Err


def as_default(default: Any) -> Default:
    """Normalise a raw default argument into the tagged form.

    Already-tagged values pass through. Any other callable becomes a
    DefaultFactory, everything else a DefaultValue.
    """
    if isinstance(default, (DefaultValue, DefaultFactory)):
        return default
    if callable(default):
        return DefaultFactory(default)
    return DefaultValue(default)
