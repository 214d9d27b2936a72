"""fetchkit - Resilient JSON fetching for native and sandboxed async runtimes.

Fetches JSON over HTTP with bounded, classified retries: 5xx, network errors
and timeouts are retried with exponential backoff, 4xx and bad bodies fail
immediately. The same code runs on a native asyncio deployment and on a
single-threaded host that drives timers itself (edge workers).

Quick Start:
    >>> from pydantic import BaseModel
    >>> from fetchkit import Fetcher, HttpxTransport, RetrySettings
    >>>
    >>> class Todo(BaseModel):
    ...     id: int
    ...     title: str
    >>>
    >>> async def main():
    ...     async with HttpxTransport() as transport:
    ...         fetcher = Fetcher(transport, settings=RetrySettings().with_base_backoff(0.5))
    ...         result = await fetcher.fetch_with_retry("https://api.example.com/todos/1", Todo)
    ...         print(result.match(ok=lambda todo: todo.title, err=lambda e: f"gave up: {e}"))

Sandboxed Runtime:
    >>> from fetchkit import CooperativeTimer
    >>> fetcher = Fetcher(transport, timer=CooperativeTimer(host_scheduler))

Configuration (environment):
    FETCHKIT_RUNTIME=native|cooperative
    FETCHKIT_RETRY_MAX_RETRIES=3
    FETCHKIT_RETRY_REQUEST_TIMEOUT=10
    FETCHKIT_RETRY_BASE_BACKOFF=2
    FETCHKIT_LOG_FORMAT=console|json|none
"""

from .fetcher import Attempt, Fetcher, FetchState
from .foundation.config import FetchkitSettings, clear_settings_cache, get_settings
from .foundation.errors import (
    DecodeError,
    Err,
    ErrorCode,
    FetchError,
    HttpStatusError,
    Ok,
    ProcessingError,
    Result,
    RetriesExhausted,
    TimedOut,
    TransportError,
)
from .io import Decoder, HttpxTransport, JsonDecoder, RawResponse, Transport
from .runtime.concurrency import run_sync
from .runtime.observability import (
    DiagnosticSink,
    LoggingSink,
    NullSink,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from .runtime.retry import BackoffPolicy, ErrorClassifier, Retryable, RetrySettings, Success, Terminal
from .runtime.timer import (
    CooperativeTimer,
    ExternalScheduler,
    LoopScheduler,
    NativeTimer,
    PlatformTimer,
    VirtualScheduler,
    select_timer,
)

__version__ = "0.1.0"

__all__ = [
    # Fetcher
    "Fetcher", "FetchState", "Attempt",
    # Retry
    "RetrySettings", "BackoffPolicy", "ErrorClassifier", "Success", "Retryable", "Terminal",
    # Timers
    "PlatformTimer", "NativeTimer", "CooperativeTimer", "ExternalScheduler",
    "LoopScheduler", "VirtualScheduler", "select_timer",
    # Collaborators
    "Transport", "RawResponse", "HttpxTransport", "Decoder", "JsonDecoder",
    # Errors
    "ErrorCode", "FetchError", "TransportError", "TimedOut", "HttpStatusError",
    "DecodeError", "ProcessingError", "RetriesExhausted", "Result", "Ok", "Err",
    # Config & observability
    "FetchkitSettings", "get_settings", "clear_settings_cache",
    "DiagnosticSink", "LoggingSink", "NullSink", "configure_logging", "configure_from_settings", "get_logger",
    # Interop
    "run_sync",
]
