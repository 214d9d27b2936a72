"""Cooperative single-threaded runtime with externally driven timers.

Sandboxed hosts (edge workers and the like) own the clock: the process may not
start threads or keep its own timers, it asks the host to call back later.
CooperativeTimer requests every delay from an ExternalScheduler and suspends
only at those points. Nothing here touches threads.

Two schedulers are provided:
    - LoopScheduler: host clock is the running event loop. This is the
      deployment default; a real host plugs in its own ExternalScheduler.
    - VirtualScheduler: simulated clock for tests and host-side simulation.
      Time jumps instead of elapsing, so real IO must be declared with
      `external()` or the jump would expire its timeout.

Example:
    >>> clock = VirtualScheduler()
    >>> timer = CooperativeTimer(clock)
    >>> async def main():
    ...     await clock.run(timer.sleep(5.0))   # returns immediately, clock.now == 5.0
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Awaitable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Protocol, TypeVar, runtime_checkable

from .base import RaceTimer, TimerHandle

T = TypeVar("T")


@runtime_checkable
class ExternalScheduler(Protocol):
    """Host capability: call `callback` once after `delay` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """ExternalScheduler backed by the running event loop."""

    __slots__ = ()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


@dataclass(order=True, slots=True)
class _Entry:
    deadline: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Simulated clock for tests and host-side simulation.

    Time only moves when `advance()` / `advance_to_next()` is called, or when
    `run()` finds the program idle on virtual time and jumps to the next
    deadline. Callbacks with equal deadlines fire in scheduling order.

    Work that waits on the real world (sockets, other threads) is invisible to
    the idle check. Wrap it in `external()` (or `with clock.holding():`) so
    `run()` holds the clock still until it finishes.
    """

    __slots__ = ("_now", "_queue", "_seq", "_holds", "history")

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[_Entry] = []
        self._seq = itertools.count()
        self._holds = 0
        self.history: list[float] = []  # requested delays, in order

    @property
    def now(self) -> float:
        return self._now

    @property
    def held(self) -> bool:
        """True while external work is in flight; run() will not jump the clock."""
        return self._holds > 0

    @contextmanager
    def holding(self) -> Iterator[None]:
        self._holds += 1
        try:
            yield
        finally:
            self._holds -= 1

    async def external(self, awaitable: Awaitable[T]) -> T:
        """Await real-world work without letting run() jump virtual time past it."""
        with self.holding():
            return await awaitable

    @property
    def pending(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)

    def next_deadline(self) -> float | None:
        self._drop_cancelled()
        return self._queue[0].deadline if self._queue else None

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        self.history.append(delay)
        entry = _Entry(self._now + max(delay, 0.0), next(self._seq), callback)
        heapq.heappush(self._queue, entry)
        return entry

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many fired."""
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].deadline <= target:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = entry.deadline
            entry.callback()
            fired += 1
        self._now = target
        return fired

    def advance_to_next(self) -> int:
        """Jump straight to the earliest pending deadline."""
        if (deadline := self.next_deadline()) is None:
            return 0
        return self.advance(deadline - self._now)

    async def run(self, awaitable: Awaitable[T], *, idle_spins: int = 16, poll: float = 0.01) -> T:
        """Drive `awaitable` to completion, jumping the clock whenever it is idle.

        "Idle" means no progress for `idle_spins` loop iterations while nothing
        is held by `external()`. While external work is in flight, or when no
        virtual timer is pending, the driver waits up to `poll` real seconds
        before checking again.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            while not task.done():
                for _ in range(idle_spins):
                    await asyncio.sleep(0)
                    if task.done():
                        break
                else:
                    if self.held or not self.advance_to_next():
                        await asyncio.wait({task}, timeout=poll)
            return task.result()
        finally:
            if not task.done():
                task.cancel()

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)

    def __repr__(self) -> str:
        return f"VirtualScheduler(now={self._now}, pending={self.pending})"


class CooperativeTimer(RaceTimer):
    """PlatformTimer whose delays are requested from an ExternalScheduler."""

    __slots__ = ("_scheduler",)

    def __init__(self, scheduler: ExternalScheduler | None = None) -> None:
        self._scheduler = scheduler or LoopScheduler()

    @property
    def scheduler(self) -> ExternalScheduler:
        return self._scheduler

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        wake: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        handle = self._scheduler.call_later(seconds, lambda: wake.done() or wake.set_result(None))
        try:
            await wake
        finally:
            handle.cancel()  # no-op once fired; releases the host timer when abandoned

    def _arm(self, seconds: float, fire: Callable[[], None]) -> TimerHandle:
        return self._scheduler.call_later(seconds, fire)

    def __repr__(self) -> str:
        return f"CooperativeTimer({self._scheduler!r})"
