"""Tests for HttpxTransport and JsonDecoder against httpx.MockTransport."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest
from pydantic import BaseModel

from fetchkit import (
    DecodeError,
    Fetcher,
    HttpxTransport,
    JsonDecoder,
    NativeTimer,
    RetrySettings,
    Transport,
    TransportError,
)
from fetchkit.foundation.config import HttpDefaults
from fetchkit.tests.fakes import RecordingSink, Todo

URL = "https://api.example.test/todos/1"


def mock_client(handler: httpx.MockTransport | object) -> httpx.AsyncClient:
    transport = handler if isinstance(handler, httpx.MockTransport) else httpx.MockTransport(handler)  # type: ignore[arg-type]
    return httpx.AsyncClient(transport=transport)


# ─────────────────────────────────────────────────────────────────────────────
# HttpxTransport
# ─────────────────────────────────────────────────────────────────────────────

class TestHttpxTransport:

    @pytest.mark.asyncio
    async def test_returns_raw_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            return httpx.Response(200, content=b'{"id":1}')

        async with mock_client(handler) as client:
            resp = await HttpxTransport(client).send_get(URL)

        assert (resp.status, resp.body, resp.reason) == (200, b'{"id":1}', "OK")
        assert resp.is_success

    @pytest.mark.asyncio
    async def test_non_2xx_is_not_an_exception(self) -> None:
        async with mock_client(lambda r: httpx.Response(503, content=b"busy")) as client:
            resp = await HttpxTransport(client).send_get(URL)

        assert resp.status == 503
        assert not resp.is_success

    @pytest.mark.asyncio
    async def test_connect_error_becomes_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await HttpxTransport(client).send_get(URL)

        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_read_timeout_marked_as_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransportError, match="timeout"):
                await HttpxTransport(client).send_get(URL)

    @pytest.mark.asyncio
    async def test_shared_client_left_open(self) -> None:
        async with mock_client(lambda r: httpx.Response(200)) as client:
            await HttpxTransport(client).aclose()
            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        transport = HttpxTransport(settings=HttpDefaults(user_agent="fetchkit-test/1.0"))
        assert transport.client.headers["User-Agent"] == "fetchkit-test/1.0"

        async with transport:
            pass
        assert transport.client.is_closed

    def test_satisfies_protocol(self) -> None:
        assert isinstance(HttpxTransport(httpx.AsyncClient()), Transport)


# ─────────────────────────────────────────────────────────────────────────────
# JsonDecoder
# ─────────────────────────────────────────────────────────────────────────────

class Owner(BaseModel):
    name: str


@dataclass
class Point:
    x: float
    y: float


class TestJsonDecoder:

    def test_model(self) -> None:
        assert JsonDecoder().decode(b'{"id": 3, "extra": true}', Todo) == Todo(id=3)

    def test_generic_shapes(self) -> None:
        decoder = JsonDecoder()
        assert decoder.decode(b'[{"id":1},{"id":2}]', list[Todo]) == [Todo(id=1), Todo(id=2)]
        assert decoder.decode(b'{"x":1,"y":2.5}', Point) == Point(1.0, 2.5)
        assert decoder.decode(b'{"a":1}', dict[str, int]) == {"a": 1}

    def test_lax_by_default_strict_on_request(self) -> None:
        assert JsonDecoder().decode(b'{"id":"5"}', Todo) == Todo(id=5)
        with pytest.raises(DecodeError):
            JsonDecoder(strict=True).decode(b'{"id":"5"}', Todo)

    def test_invalid_json(self) -> None:
        with pytest.raises(DecodeError, match="not valid JSON"):
            JsonDecoder().decode(b"{oops", Todo)

    def test_shape_mismatch_names_field(self) -> None:
        with pytest.raises(DecodeError, match=r"does not match Owner: 1 validation error\(s\): name"):
            JsonDecoder().decode(b"{}", Owner)


# ─────────────────────────────────────────────────────────────────────────────
# End to end
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_fetcher_over_httpx() -> None:
    responses = iter([httpx.Response(502), httpx.Response(200, json={"id": 9})])
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return next(responses)

    sink = RecordingSink()
    async with mock_client(handler) as client:
        fetcher = Fetcher(
            HttpxTransport(client),
            settings=RetrySettings(base_backoff=0.01, request_timeout=2.0),
            timer=NativeTimer(),
            sink=sink,
        )
        todo = await fetcher.fetch(URL, Todo)

    assert todo == Todo(id=9)
    assert seen == [URL, URL]
    assert sink.failures[0][2].status == 502  # type: ignore[attr-defined]
