"""Native asyncio runtime.

Delays come from the running event loop's own clock. The timer holds no
per-loop state, so one instance can serve loops on several threads (for
instance the worker-thread loops created by `run_sync`).
"""

from __future__ import annotations

import asyncio
from typing import Callable

from .base import RaceTimer, TimerHandle


class NativeTimer(RaceTimer):
    """PlatformTimer backed by asyncio.sleep and loop.call_later."""

    __slots__ = ()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0.0))

    def _arm(self, seconds: float, fire: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(seconds, fire)

    def __repr__(self) -> str:
        return "NativeTimer()"
