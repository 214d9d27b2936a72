"""Platform timers: sleep and race-with-timeout for each runtime.

One PlatformTimer protocol, two implementations:
    - NativeTimer: asyncio event loop clock
    - CooperativeTimer: delays requested from a host-owned ExternalScheduler

The implementation is chosen once per deployment with select_timer(); the
Fetcher only ever sees the protocol.

Example:
    >>> timer = select_timer("cooperative", scheduler=VirtualScheduler())
    >>> isinstance(timer, PlatformTimer)
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import Operation, PlatformTimer, RaceTimer, TimerHandle
from .cooperative import CooperativeTimer, ExternalScheduler, LoopScheduler, VirtualScheduler
from .native import NativeTimer

if TYPE_CHECKING:
    from fetchkit.foundation.config import Runtime


def select_timer(
    runtime: Runtime | None = None,
    *,
    scheduler: ExternalScheduler | None = None,
) -> PlatformTimer:
    """Build the timer for this deployment.

    Args:
        runtime: "native" or "cooperative"; defaults to FETCHKIT_RUNTIME
        scheduler: Host scheduler for the cooperative runtime (defaults to the loop)

    Raises:
        ValueError: Unknown runtime, or a scheduler passed for the native runtime
    """
    if runtime is None:
        from fetchkit.foundation.config import get_settings
        runtime = get_settings().runtime
    match runtime:
        case "native":
            if scheduler is not None:
                raise ValueError("native runtime uses the event loop clock; scheduler is only for 'cooperative'")
            return NativeTimer()
        case "cooperative":
            return CooperativeTimer(scheduler)
        case _:
            raise ValueError(f"Unknown runtime: {runtime!r}. Use 'native' or 'cooperative'")


__all__ = [
    "PlatformTimer",
    "TimerHandle",
    "Operation",
    "RaceTimer",
    "NativeTimer",
    "CooperativeTimer",
    "ExternalScheduler",
    "LoopScheduler",
    "VirtualScheduler",
    "select_timer",
]
