"""Tests for cache entry models and tagged types."""

import pytest
from pydantic import ValidationError

from newton_cache.models.common import _now_ms
from newton_cache.models.model_entry import (
    CacheEntry,
    DefaultFactory,
    DefaultValue,
    PersistOutcome,
    as_default,
)


class TestCacheEntry:
    """Tests for the CacheEntry model."""

    def test_parses_wire_names(self) -> None:
        entry = CacheEntry.model_validate({"value": 1, "expiresAt": 1000, "key": "k"})
        assert entry.value == 1
        assert entry.expires_at == 1000
        assert entry.original_key == "k"

    def test_accepts_field_names(self) -> None:
        entry = CacheEntry(value="v", expires_at=5, original_key="k")
        assert entry.expires_at == 5
        assert entry.original_key == "k"

    def test_value_is_required(self) -> None:
        with pytest.raises(ValidationError):
            CacheEntry.model_validate({"expiresAt": 1000})

    def test_null_value_is_valid(self) -> None:
        entry = CacheEntry.model_validate({"value": None})
        assert entry.value is None

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError):
            CacheEntry.model_validate("not a record")

    def test_rejects_non_numeric_expiry(self) -> None:
        with pytest.raises(ValidationError):
            CacheEntry.model_validate({"value": 1, "expiresAt": "soon"})

    def test_truncates_fractional_expiry(self) -> None:
        entry = CacheEntry.model_validate({"value": 1, "expiresAt": 1500.75})
        assert entry.expires_at == 1500

    def test_to_payload_omits_unset_metadata(self) -> None:
        assert CacheEntry(value=None).to_payload() == {"value": None}
        assert CacheEntry(value=1, expires_at=10, original_key="k").to_payload() == {
            "value": 1,
            "expiresAt": 10,
            "key": "k",
        }

    def test_is_expired(self) -> None:
        assert not CacheEntry(value=1).is_expired()
        assert CacheEntry(value=1, expires_at=100).is_expired(now_ms=100)
        assert not CacheEntry(value=1, expires_at=100).is_expired(now_ms=99)
        assert not CacheEntry(value=1, expires_at=_now_ms() + 60_000).is_expired()

    def test_remaining_ms(self) -> None:
        assert CacheEntry(value=1).remaining_ms() is None
        assert CacheEntry(value=1, expires_at=1500).remaining_ms(now_ms=1000) == 500


class TestDefaults:
    """Tests for default normalisation."""

    def test_literal(self) -> None:
        assert as_default("x") == DefaultValue("x")
        assert as_default(None) == DefaultValue(None)

    def test_callable_becomes_factory(self) -> None:
        factory = lambda: 1  # noqa: E731
        assert as_default(factory) == DefaultFactory(factory)

    def test_tagged_values_pass_through(self) -> None:
        tagged = DefaultValue(len)
        assert as_default(tagged) is tagged


def test_persist_outcome_values() -> None:
    assert PersistOutcome.SUCCEEDED.value == "succeeded"
    assert PersistOutcome.FAILED.value == "failed"
