"""Suspension primitives shared by every runtime.

PlatformTimer is the one contract the Fetcher depends on:

    await timer.sleep(seconds)
    value = await timer.race_with_timeout(lambda: send(), seconds)

race_with_timeout runs the operation against a delay. The operation's value is
returned only if it finishes strictly before the delay; if the delay elapses
first or at the same moment, TimedOut is raised. The loser is cancelled, and a
cancelled operation is awaited to completion of its cleanup before returning,
so an abandoned network call has released its connection and its partial
result is never seen.

Runtimes differ only in where delays come from, see native.py and
cooperative.py.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Callable, Protocol, TypeVar, runtime_checkable

from fetchkit.foundation.errors import TimedOut

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


@runtime_checkable
class PlatformTimer(Protocol):
    """Protocol for runtime-specific suspension."""

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for `seconds`. Never fails."""
        ...

    async def race_with_timeout(self, op: Operation[T], seconds: float) -> T:
        """Run op() against a delay; return its value or raise TimedOut."""
        ...


@runtime_checkable
class TimerHandle(Protocol):
    """Cancellation handle for a scheduled callback (asyncio.TimerHandle conforms)."""

    def cancel(self) -> None: ...


class RaceTimer(ABC):
    """Race logic common to both runtimes.

    Subclasses provide `_arm`, which schedules `fire` after `seconds` on their
    clock and returns a handle to cancel it.
    """

    __slots__ = ()

    @abstractmethod
    def _arm(self, seconds: float, fire: Callable[[], None]) -> TimerHandle: ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None: ...

    async def race_with_timeout(self, op: Operation[T], seconds: float) -> T:
        if seconds <= 0:
            # A zero delay always wins the tie; the operation is never started
            raise TimedOut(max(seconds, 0.0))

        task = asyncio.ensure_future(op())
        deadline: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        handle = self._arm(seconds, lambda: deadline.done() or deadline.set_result(None))

        try:
            await asyncio.wait({task, deadline}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            handle.cancel()
            deadline.cancel()
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise

        if deadline.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise TimedOut(seconds)

        handle.cancel()
        deadline.cancel()
        return task.result()
