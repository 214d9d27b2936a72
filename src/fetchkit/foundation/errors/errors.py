"""Fetch failure taxonomy.

Every failure a fetch can end with is a FetchError subclass carrying an
ErrorCode and the URL it concerns. The Fetcher returns these inside Err(...);
they are exceptions so that `fetch()` and `Result.unwrap()` callers can raise them.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache


class ErrorCode(StrEnum):
    """Standard error codes for fetch failures."""
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    HTTP_STATUS = "HTTP_STATUS"
    PARSE_ERROR = "PARSE_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"


class FetchError(Exception):
    """Base class for all fetch failures."""

    code: ErrorCode = ErrorCode.NETWORK_ERROR

    def __init__(self, message: str, *, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(self.render())

    def render(self) -> str:
        return f"{self.message} (GET {self.url})" if self.url else self.message

    def with_url(self, url: str) -> FetchError:
        """Return a copy of this error bound to url."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.url = url
        Exception.__init__(clone, clone.render())
        clone.__cause__ = self.__cause__
        return clone

    def __str__(self) -> str:
        return self.render()


class TransportError(FetchError):
    """Connect, DNS or IO failure below the HTTP layer."""

    code = ErrorCode.NETWORK_ERROR


class TimedOut(FetchError, TimeoutError):
    """The per-attempt timeout elapsed before the operation finished."""

    code = ErrorCode.TIMEOUT

    def __init__(self, after: float, *, url: str | None = None) -> None:
        self.after = after
        super().__init__(f"Operation timed out after {after:g}s", url=url)


class HttpStatusError(FetchError):
    """Endpoint answered with a non-2xx status."""

    code = ErrorCode.HTTP_STATUS

    def __init__(self, status: int, body: bytes = b"", *, reason: str = "", url: str | None = None) -> None:
        self.status = status
        self.body = body
        self.reason = reason
        super().__init__(f"HTTP {status} {reason}".rstrip(), url=url)

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status <= 599

    def body_preview(self, limit: int = 200) -> str:
        text = self.body[:limit].decode("utf-8", errors="replace")
        return f"{text}..." if len(self.body) > limit else text


class DecodeError(FetchError):
    """Response body could not be parsed as the expected shape."""

    code = ErrorCode.PARSE_ERROR


class ProcessingError(FetchError):
    """Post-decode processing step rejected the value."""

    code = ErrorCode.PROCESSING_ERROR


class RetriesExhausted(FetchError):
    """Every allowed attempt failed with a retryable error."""

    code = ErrorCode.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, last_reason: FetchError, *, url: str | None = None) -> None:
        self.attempts = attempts
        self.last_reason = last_reason
        noun = "attempt" if attempts == 1 else "attempts"
        super().__init__(f"Request failed after {attempts} {noun}: {last_reason.message}", url=url)


# Exception type names (lowercased) that indicate a timeout rather than an IO failure
_TIMEOUT_MARKERS: tuple[str, ...] = ("timeout", "timedout")


@lru_cache(maxsize=128)
def _is_timeout_name(name: str) -> bool:
    lowered = name.lower()
    return any(m in lowered for m in _TIMEOUT_MARKERS)


def classify_exception(exc: BaseException, *, url: str | None = None) -> FetchError:
    """Map an exception raised by a transport to a FetchError.

    FetchErrors pass through (bound to url). Timeout-like exceptions become
    TransportError too: the transport's own timeouts are IO failures, the
    attempt timeout is reported separately as TimedOut by the timer.
    """
    if isinstance(exc, FetchError):
        return exc.with_url(url) if url and exc.url is None else exc
    kind = "timeout" if _is_timeout_name(type(exc).__name__) else "transport error"
    err = TransportError(f"{kind}: {type(exc).__name__}: {exc}".rstrip(": "), url=url)
    err.__cause__ = exc
    return err
