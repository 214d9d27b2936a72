"""Structured logging for fetches.

Log entries are an event name plus key-value context. A BoundLogger carries
context that every entry it writes includes; `bind()` returns a new logger, so
the Fetcher can bind `url` once per call and hand the result around.

Output goes to one renderer per context:
    - console: `12:00:01.250 [warning] fetch.attempt_failed GET https://... (2/4) code=... reason=...`
    - json:    one JSON object per line (orjson)
    - none:    discarded

Until configure_logging() is called, the first entry picks the renderer from
FETCHKIT_LOG_FORMAT / FETCHKIT_LOG_LEVEL.

Quick Start:
    >>> configure_logging(format="json", level="DEBUG")
    >>> log = get_logger("fetchkit.fetcher").bind(url="https://api.example.com/todos/1")
    >>> log.info("fetch.succeeded", attempts=2)
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Callable, Protocol, TextIO, TypeAlias, runtime_checkable

import orjson

if TYPE_CHECKING:
    from fetchkit.foundation.config import FetchkitSettings

JsonValue: TypeAlias = "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
JsonDict: TypeAlias = "dict[str, JsonValue]"

_log_context: ContextVar[JsonDict] = ContextVar("fetchkit_log_context", default={})
_renderer: ContextVar[LogRenderer | None] = ContextVar("fetchkit_log_renderer", default=None)
_level: ContextVar[int] = ContextVar("fetchkit_log_level", default=logging.INFO)


@dataclass(slots=True)
class LogEntry:
    """One log event with its merged context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(slots=True)
class BoundLogger:
    """Logger with bound context. Every method returning a logger returns a new one."""

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int = logging.INFO

    def _derive(self, context: JsonDict, renderer: LogRenderer | None) -> BoundLogger:
        return BoundLogger(context=context, _renderer=renderer, _level=self._level)

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return self._derive({**self.context, **kw}, self._renderer)

    def unbind(self, *keys: str) -> BoundLogger:
        return self._derive({k: v for k, v in self.context.items() if k not in keys}, self._renderer)

    def with_renderer(self, renderer: LogRenderer) -> BoundLogger:
        """Same context, fixed renderer (ignores configure_logging)."""
        return self._derive(dict(self.context), renderer)

    def _emit(self, level: int, event: str, kw: JsonDict) -> None:
        if level < self._level:
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event,
                         {**_log_context.get(), **self.context, **kw})
        (self._renderer or _active_renderer()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None: self._emit(logging.DEBUG, event, kw)
    def info(self, event: str, **kw: JsonValue) -> None: self._emit(logging.INFO, event, kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self._emit(logging.WARNING, event, kw)
    def error(self, event: str, **kw: JsonValue) -> None: self._emit(logging.ERROR, event, kw)

    def scope(self, **kw: JsonValue) -> LogScope:
        """Add fields to every entry logged inside the `with` block, by any logger.

        Example:
            >>> with log.scope(request_id="abc123"):
            ...     await fetcher.fetch(url, Todo)  # fetch.* entries carry request_id
        """
        return LogScope(kw)


class LogScope:
    """Context manager pushing fields onto the contextvar log context."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, ctx: JsonDict) -> None:
        self._ctx, self._token = ctx, None

    def __enter__(self) -> None:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})

    def __exit__(self, *_: object) -> None:
        if self._token is not None:
            _log_context.reset(self._token)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


_ANSI = {
    "reset": "\033[0m", "dim": "\033[2m", "bold": "\033[1m", "key": "\033[36m",
    "debug": "\033[34m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m", "critical": "\033[31m",
}
_PLAIN = dict.fromkeys(_ANSI, "")


@dataclass(slots=True)
class ConsoleRenderer:
    """One line per entry for humans.

    `url`, `attempt` and `total` are lifted into a `GET <url> (attempt/total)`
    headline after the event name; the remaining fields follow sorted by key.
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = colour only when output is a tty
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = bool(getattr(self.output, "isatty", lambda: False)())

    def render(self, entry: LogEntry) -> None:
        p = _ANSI if self.colors else _PLAIN
        ctx = dict(entry.context)
        line = [f"{p['dim']}{entry.ts_human}{p['reset']}"] if self.show_timestamp else []
        line.append(f"{p.get(entry.level, '')}[{entry.level}]{p['reset']} {p['bold']}{entry.event}{p['reset']}")
        if (url := ctx.pop("url", None)) is not None:
            line.append(f"GET {url}")
        if "attempt" in ctx and "total" in ctx:
            line.append(f"({ctx.pop('attempt')}/{ctx.pop('total')})")
        line += [f"{p['key']}{k}{p['reset']}={_format_value(v)}" for k, v in sorted(ctx.items())]
        self.output.write(" ".join(line) + "\n")


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines; values orjson cannot encode are written as str()."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        record = {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context}
        self.output.write(
            orjson.dumps(record, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE, default=str).decode()
        )


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        pass


@dataclass(slots=True)
class MemoryRenderer:
    """Keeps entries in memory for tests and host-side inspection."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self) -> list[str]:
        return [e.event for e in self.entries]

    def clear(self) -> None:
        self.entries.clear()


def _format_value(v: object) -> str:
    match v:
        case str() if not v or " " in v:
            return repr(v)
        case float():
            return f"{v:g}"
        case _:
            return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

_FACTORIES: dict[str, Callable[[TextIO | None, bool | None], LogRenderer]] = {
    "console": lambda out, colors: ConsoleRenderer(output=out or sys.stderr, colors=colors),
    "json": lambda out, _: JsonRenderer(output=out or sys.stdout),
    "none": lambda _out, _colors: NoOpRenderer(),
}


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str | int = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Select the renderer and minimum level for loggers created from now on.

    Raises:
        ValueError: format is not "console", "json" or "none"
    """
    if (factory := _FACTORIES.get(format)) is None:
        raise ValueError(f"Unknown format: {format!r}. Use one of: {', '.join(_FACTORIES)}")
    renderer = factory(output, colors)
    _level.set(_parse_level(level))
    _renderer.set(renderer)
    return renderer


def configure_from_settings(settings: FetchkitSettings | None = None) -> LogRenderer:
    """configure_logging() from the FETCHKIT_LOG_* settings section."""
    if settings is None:
        from fetchkit.foundation.config import get_settings
        settings = get_settings()
    return configure_logging(settings.logging.format, settings.logging.level)


def get_logger(name: str | None = None, **context: JsonValue) -> BoundLogger:
    """Logger at the configured level; `name` is recorded as the `logger` field."""
    if name:
        context["logger"] = name
    return BoundLogger(context=context, _level=_level.get())


def _active_renderer() -> LogRenderer:
    return _renderer.get() or configure_from_settings()
