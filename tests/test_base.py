"""Tests for shared adapter helpers."""

import math

import pytest

from newton_cache.models.common import _now_ms
from newton_cache.models.model_entry import Err, Ok
from newton_cache.storage.cache.base import (
    Cache,
    expires_at_for,
    invoke_factory,
    is_counter_value,
)


def test_cache_is_abstract() -> None:
    with pytest.raises(TypeError):
        Cache()


class TestInvokeFactory:
    """Tests for invoke_factory."""

    def test_ok(self) -> None:
        assert invoke_factory(lambda: 42) == Ok(42)

    def test_err(self) -> None:
        error = RuntimeError("boom")

        def boom():
            raise error

        result = invoke_factory(boom)
        assert isinstance(result, Err)
        assert result.error is error


class TestExpiresAtFor:
    """Tests for TTL to expiry conversion."""

    @pytest.mark.parametrize("ttl", [None, math.inf, -math.inf, math.nan])
    def test_never_expires(self, ttl: float | None) -> None:
        assert expires_at_for(ttl) is None

    def test_finite_ttl(self) -> None:
        before = _now_ms()
        expires_at = expires_at_for(2.5)
        after = _now_ms()
        assert expires_at is not None
        assert before + 2500 <= expires_at <= after + 2500

    def test_huge_integer_ttl_never_expires(self) -> None:
        assert expires_at_for(10**400) is None

    def test_negative_ttl_is_already_expired(self) -> None:
        expires_at = expires_at_for(-1)
        assert expires_at is not None
        assert expires_at < _now_ms()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, True),
        (1.5, True),
        (-3, True),
        (True, False),
        ("1", False),
        (None, False),
        ([1], False),
    ],
)
def test_is_counter_value(value, expected: bool) -> None:
    assert is_counter_value(value) is expected
