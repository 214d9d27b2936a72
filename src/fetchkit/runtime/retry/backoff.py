"""Backoff delay calculation.

Retry numbers are 1-based: delay(1) is the wait before the first retry. The
initial attempt (retry number 0) never sleeps.

    delay(n) = base * 2 ** (n - 1)        for n >= 1

giving base, 2*base, 4*base, ... The exponent saturates at MAX_EXPONENT so
large retry numbers cannot overflow.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

MAX_EXPONENT = 30


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation."""

    def delay(self, retry: int) -> float:
        """Seconds to wait before the given 1-based retry (0 for the initial attempt)."""
        ...


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Deterministic exponential backoff, doubling from `base`.

    Attributes:
        base: Delay before the first retry in seconds
        max_delay: Optional clamp applied after doubling (None = unbounded)
    """

    base: float = 2.0
    max_delay: float | None = None

    def __post_init__(self) -> None:
        if not self.base > 0:
            raise ValueError(f"base must be > 0, got {self.base}")
        if self.max_delay is not None and not self.max_delay > 0:
            raise ValueError(f"max_delay must be > 0, got {self.max_delay}")

    def delay(self, retry: int) -> float:
        if retry <= 0:
            return 0.0
        d = math.ldexp(self.base, min(retry - 1, MAX_EXPONENT))
        return d if self.max_delay is None else min(d, self.max_delay)

    def schedule(self, retries: int) -> tuple[float, ...]:
        """Delays for retries 1..retries, in order."""
        return tuple(self.delay(n) for n in range(1, retries + 1))
