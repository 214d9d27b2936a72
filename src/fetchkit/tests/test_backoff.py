"""Tests for BackoffPolicy."""

from __future__ import annotations

import pytest

from fetchkit.runtime.retry import MAX_EXPONENT, Backoff, BackoffPolicy


def test_initial_attempt_never_sleeps() -> None:
    assert BackoffPolicy(base=2.0).delay(0) == 0.0
    assert BackoffPolicy(base=2.0).delay(-3) == 0.0


@pytest.mark.parametrize("base", [0.1, 1.0, 2.0, 7.5])
def test_delay_doubles_from_base(base: float) -> None:
    policy = BackoffPolicy(base=base)
    for n in range(1, 21):
        assert policy.delay(n) == pytest.approx(base * 2 ** (n - 1))


def test_first_retry_waits_exactly_base() -> None:
    assert BackoffPolicy(base=0.1).schedule(3) == pytest.approx((0.1, 0.2, 0.4))


def test_delay_strictly_increasing() -> None:
    policy = BackoffPolicy(base=0.5)
    delays = [policy.delay(n) for n in range(1, MAX_EXPONENT + 2)]
    assert all(a < b for a, b in zip(delays, delays[1:]))


def test_exponent_saturates_without_overflow() -> None:
    policy = BackoffPolicy(base=1.0)
    ceiling = policy.delay(MAX_EXPONENT + 1)
    assert policy.delay(10_000) == ceiling
    assert ceiling == 2.0 ** MAX_EXPONENT


def test_max_delay_clamps() -> None:
    policy = BackoffPolicy(base=1.0, max_delay=5.0)
    assert policy.schedule(5) == (1.0, 2.0, 4.0, 5.0, 5.0)


@pytest.mark.parametrize("kwargs", [{"base": 0.0}, {"base": -1.0}, {"base": 1.0, "max_delay": 0.0}])
def test_rejects_non_positive_durations(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)


def test_policy_is_pure() -> None:
    policy = BackoffPolicy(base=3.0)
    assert [policy.delay(4) for _ in range(5)] == [24.0] * 5
    assert isinstance(policy, Backoff)
