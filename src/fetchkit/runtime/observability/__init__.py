"""Observability: structured logging and fetch diagnostics."""

from .diagnostics import DiagnosticSink, LoggingSink, NullSink
from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    LogScope,
    MemoryRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging
    "BoundLogger",
    "LogEntry",
    "LogScope",
    "LogRenderer",
    "ConsoleRenderer",
    "JsonRenderer",
    "NoOpRenderer",
    "MemoryRenderer",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    # Diagnostics
    "DiagnosticSink",
    "LoggingSink",
    "NullSink",
]
