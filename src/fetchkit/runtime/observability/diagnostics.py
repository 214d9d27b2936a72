"""Diagnostic sinks: observers of a fetch's attempts.

The Fetcher reports every classifier decision and every scheduled retry to a
DiagnosticSink. Sinks observe only; they cannot change the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from fetchkit.foundation.errors import FetchError, HttpStatusError

from .logging import BoundLogger, get_logger


@runtime_checkable
class DiagnosticSink(Protocol):
    """Protocol for attempt observers.

    `attempt` is 1-based; `total` is the maximum number of attempts allowed.
    """

    def attempt_failed(self, url: str, attempt: int, total: int, reason: FetchError, *, retryable: bool) -> None: ...

    def retry_scheduled(self, url: str, attempt: int, total: int, delay: float) -> None: ...


class NullSink:
    """Discards all diagnostics."""

    __slots__ = ()

    def attempt_failed(self, url: str, attempt: int, total: int, reason: FetchError, *, retryable: bool) -> None:
        pass

    def retry_scheduled(self, url: str, attempt: int, total: int, delay: float) -> None:
        pass


@dataclass(slots=True)
class LoggingSink:
    """Writes diagnostics as structured log entries.

    Retryable failures log at warning, terminal ones at error. HTTP status
    failures with a body carry its first 200 characters as `body`.
    """

    log: BoundLogger = field(default_factory=lambda: get_logger("fetchkit.fetcher"))

    def attempt_failed(self, url: str, attempt: int, total: int, reason: FetchError, *, retryable: bool) -> None:
        emit = self.log.warning if retryable else self.log.error
        extra = {"body": reason.body_preview()} if isinstance(reason, HttpStatusError) and reason.body else {}
        emit(
            "fetch.attempt_failed",
            url=url,
            attempt=attempt,
            total=total,
            code=reason.code.value,
            reason=reason.message,
            retryable=retryable,
            **extra,
        )

    def retry_scheduled(self, url: str, attempt: int, total: int, delay: float) -> None:
        self.log.info("fetch.retry_scheduled", url=url, attempt=attempt, total=total, delay=round(delay, 3))
