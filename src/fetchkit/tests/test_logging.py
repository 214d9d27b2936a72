"""Tests for structured logging and the logging diagnostic sink."""

from __future__ import annotations

import contextvars
import io
import logging

import orjson
import pytest

from fetchkit import (
    Fetcher,
    HttpStatusError,
    LoggingSink,
    RetrySettings,
    TransportError,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from fetchkit.runtime.observability import (
    ConsoleRenderer,
    JsonRenderer,
    MemoryRenderer,
    NoOpRenderer,
)
from fetchkit.tests.fakes import RecordingTimer, ScriptedTransport, Todo, ok, status

URL = "https://api.example.test/todos/1"


@pytest.fixture
def memory() -> MemoryRenderer:
    return MemoryRenderer()


class TestBoundLogger:

    def test_bind_is_immutable(self, memory: MemoryRenderer) -> None:
        base = get_logger("svc").with_renderer(memory)
        child = base.bind(url=URL)

        base.info("plain")
        child.info("bound", attempt=1)

        assert memory.events() == ["plain", "bound"]
        assert "url" not in memory.entries[0].context
        assert memory.entries[1].context == {"logger": "svc", "url": URL, "attempt": 1}

    def test_unbind(self, memory: MemoryRenderer) -> None:
        log = get_logger("svc", a=1, b=2).with_renderer(memory).unbind("a")
        log.info("x")
        assert memory.entries[0].context == {"b": 2, "logger": "svc"}

    def test_scope_adds_context(self, memory: MemoryRenderer) -> None:
        log = get_logger().with_renderer(memory)
        with log.scope(request_id="r-1"):
            log.info("inside")
        log.info("outside")

        assert memory.entries[0].context == {"request_id": "r-1"}
        assert memory.entries[1].context == {}

    def test_level_filter(self, memory: MemoryRenderer) -> None:
        log = get_logger().with_renderer(memory)  # default level INFO
        log.debug("hidden")
        log.warning("shown")
        assert memory.events() == ["shown"]
        assert memory.entries[0].level == "warning"


class TestRenderers:

    def test_json_lines(self) -> None:
        out = io.StringIO()
        log = get_logger("fetchkit.fetcher").with_renderer(JsonRenderer(output=out))
        log.error("fetch.failed", attempts=4, reason="HTTP 503")

        record = orjson.loads(out.getvalue())
        assert record["event"] == "fetch.failed"
        assert record["level"] == "error"
        assert record["attempts"] == 4
        assert record["logger"] == "fetchkit.fetcher"
        assert "timestamp" in record

    def test_console_plain(self) -> None:
        out = io.StringIO()
        renderer = ConsoleRenderer(output=out, colors=False, show_timestamp=False)
        get_logger().with_renderer(renderer).info("fetch.succeeded", attempts=2, reason="all good")
        assert out.getvalue() == "[info] fetch.succeeded attempts=2 reason='all good'\n"

    def test_configure_logging(self) -> None:
        out = io.StringIO()
        assert isinstance(configure_logging("json", output=out), JsonRenderer)
        assert isinstance(configure_logging("none"), NoOpRenderer)
        with pytest.raises(ValueError, match="Unknown format"):
            configure_logging("xml")

    def test_configure_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from fetchkit import clear_settings_cache

        monkeypatch.setenv("FETCHKIT_LOG_FORMAT", "none")
        clear_settings_cache()
        assert isinstance(configure_from_settings(), NoOpRenderer)


class TestLoggingSink:

    def test_levels_follow_retryability(self, memory: MemoryRenderer) -> None:
        sink = LoggingSink(get_logger("fetchkit.fetcher").with_renderer(memory))
        sink.attempt_failed(URL, 1, 4, TransportError("reset"), retryable=True)
        sink.retry_scheduled(URL, 2, 4, 2.0)
        sink.attempt_failed(URL, 2, 4, HttpStatusError(404, reason="Not Found"), retryable=False)

        assert [(e.level, e.event) for e in memory.entries] == [
            ("warning", "fetch.attempt_failed"),
            ("info", "fetch.retry_scheduled"),
            ("error", "fetch.attempt_failed"),
        ]
        assert memory.entries[0].context["code"] == "NETWORK_ERROR"
        assert memory.entries[1].context["delay"] == 2.0
        assert memory.entries[2].context["reason"] == "HTTP 404 Not Found"

    @pytest.mark.asyncio
    async def test_fetch_emits_event_sequence(self, memory: MemoryRenderer) -> None:
        sink = LoggingSink(get_logger("fetchkit.fetcher").with_renderer(memory))
        fetcher = Fetcher(
            ScriptedTransport(status(503), ok()),
            settings=RetrySettings(base_backoff=0.1),
            timer=RecordingTimer(),
            sink=sink,
        )

        assert (await fetcher.fetch_with_retry(URL, Todo)).is_ok()
        assert memory.events() == ["fetch.attempt_failed", "fetch.retry_scheduled"]
        assert memory.entries[0].context["url"] == URL


class TestConfiguration:

    def test_level_names_and_numbers(self) -> None:
        def levels() -> tuple[int, int, int]:
            configure_logging("none", level=" debug ")
            a = get_logger()._level
            configure_logging("none", level=logging.WARNING)
            b = get_logger()._level
            configure_logging("none", level="chatty")
            return a, b, get_logger()._level

        assert contextvars.Context().run(levels) == (logging.DEBUG, logging.WARNING, logging.INFO)

    def test_first_entry_uses_env_settings(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        from fetchkit import clear_settings_cache

        monkeypatch.setenv("FETCHKIT_LOG_FORMAT", "json")
        clear_settings_cache()

        contextvars.Context().run(lambda: get_logger("fetchkit.fetcher").info("fetch.start", url=URL))

        record = orjson.loads(capsys.readouterr().out)
        assert (record["event"], record["url"]) == ("fetch.start", URL)


def test_console_headline() -> None:
    out = io.StringIO()
    log = get_logger().with_renderer(ConsoleRenderer(output=out, colors=False, show_timestamp=False))
    log.warning("fetch.attempt_failed", url=URL, attempt=2, total=4, code="HTTP_STATUS")

    assert out.getvalue() == f"[warning] fetch.attempt_failed GET {URL} (2/4) code=HTTP_STATUS\n"


def test_sink_includes_body_preview(memory: MemoryRenderer) -> None:
    sink = LoggingSink(get_logger().with_renderer(memory))
    sink.attempt_failed(URL, 1, 4, HttpStatusError(503, b"x" * 300, reason="Service Unavailable"), retryable=True)
    sink.attempt_failed(URL, 2, 4, HttpStatusError(503), retryable=True)

    assert memory.entries[0].context["body"] == "x" * 200 + "..."
    assert "body" not in memory.entries[1].context
