"""Fetcher: JSON GET with bounded, classified retries.

Each attempt runs the transport call under the platform timer's
race-with-timeout, then the classifier decides:

    Success    → Ok(value), done
    Terminal   → Err(reason), done, whatever budget is left
    Retryable  → sleep backoff.delay(n) and try again, or
                 Err(RetriesExhausted) once max_retries retries have failed

At most `max_retries + 1` attempts are made, strictly one after another.
Every decision and every scheduled retry goes to the DiagnosticSink.

Example:
    >>> class Todo(BaseModel):
    ...     id: int
    >>>
    >>> async with HttpxTransport() as transport:
    ...     fetcher = Fetcher(transport, settings=RetrySettings().with_max_retries(2))
    ...     result = await fetcher.fetch_with_retry("https://api.example.com/todos/1", Todo)
    ...     if result.is_ok():
    ...         print(result.unwrap().id)
    >>>
    >>> async with Fetcher() as fetcher:   # builds and later closes its own transport
    ...     todo = await fetcher.fetch("https://api.example.com/todos/1", Todo)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Callable, TypeVar

from fetchkit.foundation.errors import (
    Err,
    FetchError,
    Ok,
    ProcessingError,
    Result,
    RetriesExhausted,
    classify_exception,
)
from fetchkit.io import HttpxTransport, JsonDecoder
from fetchkit.runtime.concurrency import run_sync
from fetchkit.runtime.observability import LoggingSink, get_logger
from fetchkit.runtime.retry import ErrorClassifier, Retryable, RetrySettings, Success, Terminal
from fetchkit.runtime.timer import select_timer

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from fetchkit.foundation.config import FetchkitSettings
    from fetchkit.io import Decoder, Transport
    from fetchkit.runtime.observability import BoundLogger, DiagnosticSink
    from fetchkit.runtime.timer import PlatformTimer

T = TypeVar("T")
U = TypeVar("U")

Processor = Callable[[T], Result[U, FetchError] | U]


class FetchState(StrEnum):
    """Where a fetch ended up."""
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    RETRY_EXHAUSTED = "retry_exhausted"
    TERMINAL_FAILED = "terminal_failed"


@dataclass(slots=True)
class Attempt:
    """Per-call loop state. Lives only for one fetch_with_retry call."""

    url: str
    attempt_index: int = 0
    last_error: FetchError | None = None
    state: FetchState = FetchState.ATTEMPTING

    @property
    def number(self) -> int:
        """1-based attempt number, as reported to sinks."""
        return self.attempt_index + 1


class Fetcher:
    """Resilient JSON fetcher.

    Args:
        transport: HTTP transport (default: a new HttpxTransport)
        settings: Retry settings (default: RetrySettings())
        timer: Platform timer (default: select_timer(), i.e. FETCHKIT_RUNTIME)
        decoder: Body decoder (default: JsonDecoder())
        sink: Diagnostic sink (default: LoggingSink())
        extra_retryable: Non-5xx statuses to retry, e.g. frozenset({429})
    """

    __slots__ = ("_transport", "_owns_transport", "_settings", "_timer", "_decoder", "_classifier", "_sink", "_log")

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        settings: RetrySettings | None = None,
        timer: PlatformTimer | None = None,
        decoder: Decoder | None = None,
        sink: DiagnosticSink | None = None,
        extra_retryable: frozenset[int] = frozenset(),
    ) -> None:
        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport()
        self._settings = settings or RetrySettings()
        self._timer = timer or select_timer()
        self._decoder = decoder or JsonDecoder()
        self._classifier = ErrorClassifier(self._decoder, extra_retryable)
        self._sink = sink or LoggingSink()
        self._log: BoundLogger = get_logger("fetchkit.fetcher")

    @classmethod
    def from_env(cls, settings: FetchkitSettings | None = None, **overrides: object) -> Fetcher:
        """Build a Fetcher wired from the process settings (FETCHKIT_*)."""
        if settings is None:
            from fetchkit.foundation.config import get_settings
            settings = get_settings()
        transport = overrides.pop("transport", None)
        fetcher = cls(
            transport or HttpxTransport(settings=settings.http),  # type: ignore[arg-type]
            settings=RetrySettings.from_env(settings),
            timer=overrides.pop("timer", None) or select_timer(settings.runtime),  # type: ignore[arg-type]
            **overrides,  # type: ignore[arg-type]
        )
        fetcher._owns_transport = transport is None
        return fetcher

    @property
    def settings(self) -> RetrySettings:
        return self._settings

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def timer(self) -> PlatformTimer:
        return self._timer

    def with_settings(self, settings: RetrySettings) -> Fetcher:
        """New Fetcher with other settings, sharing transport, timer, decoder and sink.

        The clone never closes the shared transport; the original keeps ownership.
        """
        clone = object.__new__(Fetcher)
        clone._transport = self._transport
        clone._owns_transport = False
        clone._settings = settings
        clone._timer = self._timer
        clone._decoder = self._decoder
        clone._classifier = self._classifier
        clone._sink = self._sink
        clone._log = self._log
        return clone

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Close the transport if this Fetcher created it; a passed-in transport is left open."""
        if self._owns_transport and (close := getattr(self._transport, "aclose", None)) is not None:
            await close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ─────────────────────────────────────────────────────────────────────────
    # Fetch
    # ─────────────────────────────────────────────────────────────────────────

    async def fetch_with_retry(
        self,
        url: str,
        shape: type[T],
        *,
        process: Processor[T, U] | None = None,
    ) -> Result[T, FetchError] | Result[U, FetchError]:
        """GET url and decode it as shape, retrying transient failures.

        Args:
            url: Endpoint to fetch
            shape: Type the JSON body is validated into
            process: Optional step applied to the decoded value; an exception or
                Err from it ends the fetch without retrying

        Returns:
            Ok(value) or Err(FetchError): TransportError / TimedOut / HttpStatusError /
            DecodeError / ProcessingError for terminal failures, RetriesExhausted
            once the budget is spent
        """
        settings = self._settings
        backoff = settings.backoff()
        total = settings.max_attempts
        attempt = Attempt(url)
        log = self._log.bind(url=url)
        log.debug("fetch.start", max_attempts=total, timeout=settings.request_timeout)

        while True:
            if attempt.attempt_index > 0:
                await self._timer.sleep(backoff.delay(attempt.attempt_index))

            match await self._attempt(url, shape):
                case Success(value):
                    result = self._apply(value, process, url)
                    if result.is_err():
                        self._sink.attempt_failed(url, attempt.number, total, result.unwrap_err(), retryable=False)
                        return self._finish(log, attempt, FetchState.TERMINAL_FAILED, result)
                    return self._finish(log, attempt, FetchState.SUCCEEDED, result)

                case Terminal(reason):
                    attempt.last_error = reason
                    self._sink.attempt_failed(url, attempt.number, total, reason, retryable=False)
                    return self._finish(log, attempt, FetchState.TERMINAL_FAILED, Err(reason))

                case Retryable(reason):
                    attempt.last_error = reason
                    self._sink.attempt_failed(url, attempt.number, total, reason, retryable=True)
                    if attempt.attempt_index >= settings.max_retries:
                        exhausted = RetriesExhausted(attempt.number, reason, url=url)
                        exhausted.__cause__ = reason
                        return self._finish(log, attempt, FetchState.RETRY_EXHAUSTED, Err(exhausted))
                    attempt.attempt_index += 1
                    self._sink.retry_scheduled(url, attempt.number, total, backoff.delay(attempt.attempt_index))

    async def fetch(self, url: str, shape: type[T], *, process: Processor[T, U] | None = None) -> T | U:
        """Like fetch_with_retry, but returns the value or raises the FetchError."""
        return (await self.fetch_with_retry(url, shape, process=process)).unwrap()

    def fetch_with_retry_sync(
        self, url: str, shape: type[T], *, process: Processor[T, U] | None = None,
    ) -> Result[T, FetchError] | Result[U, FetchError]:
        """Blocking fetch_with_retry for synchronous callers (native runtime only).

        Inside a running loop the fetch moves to a worker thread with its own loop,
        so the transport's client must not be bound to the caller's loop.
        """
        return run_sync(self.fetch_with_retry(url, shape, process=process))

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    async def _attempt(self, url: str, shape: type[T]) -> Success[T] | Retryable | Terminal:
        try:
            response = await self._timer.race_with_timeout(
                lambda: self._transport.send_get(url), self._settings.request_timeout,
            )
        except Exception as e:  # TimedOut, TransportError, or a misbehaving transport
            return self._classifier.classify_error(classify_exception(e, url=url))
        return self._classifier.classify_response(response, shape, url=url)

    @staticmethod
    def _apply(value: T, process: Processor[T, U] | None, url: str) -> Result[T, FetchError] | Result[U, FetchError]:
        if process is None:
            return Ok(value)
        try:
            out = process(value)
        except FetchError as e:
            return Err(e if e.url else e.with_url(url))
        except Exception as e:
            err = ProcessingError(f"Processing failed: {type(e).__name__}: {e}", url=url)
            err.__cause__ = e
            return Err(err)
        if isinstance(out, Result):
            return out.map_err(lambda e: e if isinstance(e, FetchError) else ProcessingError(str(e), url=url))
        return Ok(out)

    @staticmethod
    def _finish(log: BoundLogger, attempt: Attempt, state: FetchState, result: Result[U, FetchError]) -> Result[U, FetchError]:
        attempt.state = state
        if result.is_ok():
            log.info("fetch.succeeded", attempts=attempt.number, state=state.value)
        else:
            err = result.unwrap_err()
            log.error("fetch.failed", attempts=attempt.number, state=state.value, code=err.code.value, reason=err.message)
        return result

    def __repr__(self) -> str:
        return f"Fetcher(settings={self._settings!r}, timer={self._timer!r})"
