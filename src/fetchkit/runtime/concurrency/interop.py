"""Sync → async bridge for blocking callers on the native runtime.

run_sync drives a coroutine to completion from synchronous code:
    1. No running loop in this thread → asyncio.run()
    2. Called from inside a running loop → run on a fresh loop in a worker thread
    3. Explicit loop provided → loop.run_until_complete()

Case 2 is what makes the native runtime multi-threaded: the fetch coroutine and
everything it holds move to another thread, so values crossing that boundary
must not be tied to the caller's loop. The cooperative runtime never calls this.

Example:
    >>> todo = run_sync(fetcher.fetch("https://api.example.com/todo/1", Todo))
"""

from __future__ import annotations

import asyncio
import contextvars
import threading
from typing import Coroutine, TypeVar

T = TypeVar("T")


def run_sync(
    coro: Coroutine[object, object, T],
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> T:
    """Run an async coroutine from synchronous code and return its result."""
    if loop is not None:
        return loop.run_until_complete(coro)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Blocking inside a running loop would deadlock it; hop to a worker thread
    return _run_in_thread_loop(coro)


def _run_in_thread_loop(coro: Coroutine[object, object, T]) -> T:
    """Run coroutine on a new event loop in a dedicated thread, carrying contextvars."""
    result: T | None = None
    error: BaseException | None = None
    ctx = contextvars.copy_context()

    def runner() -> None:
        nonlocal result, error
        try:
            result = ctx.run(asyncio.run, coro)
        except BaseException as e:
            error = e

    thread = threading.Thread(target=runner, name="fetchkit-interop", daemon=True)
    thread.start()
    thread.join()

    if error is not None:
        raise error
    return result  # type: ignore[return-value]
