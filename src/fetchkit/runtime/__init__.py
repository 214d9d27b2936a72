"""Runtime layer: retry policy, platform timers, interop, observability."""

from .concurrency import run_sync
from .observability import DiagnosticSink, LoggingSink, NullSink, configure_logging, get_logger
from .retry import BackoffPolicy, ErrorClassifier, Retryable, RetrySettings, Success, Terminal
from .timer import CooperativeTimer, NativeTimer, PlatformTimer, VirtualScheduler, select_timer

__all__ = [
    "run_sync",
    "DiagnosticSink", "LoggingSink", "NullSink", "configure_logging", "get_logger",
    "BackoffPolicy", "ErrorClassifier", "RetrySettings", "Success", "Retryable", "Terminal",
    "PlatformTimer", "NativeTimer", "CooperativeTimer", "VirtualScheduler", "select_timer",
]
