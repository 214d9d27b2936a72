"""HTTP transport capability.

The fetch loop needs one thing from HTTP: send a GET and hand back status,
reason and body bytes, or raise TransportError when no response arrived.
Status codes are not judged here; that is the classifier's job.

HttpxTransport wraps a shared httpx.AsyncClient. The client pools connections
itself, so one transport can serve many Fetchers and concurrent calls. When a
call is cancelled (attempt timeout) httpx closes the in-flight connection.

Example:
    >>> async with HttpxTransport() as transport:
    ...     fetcher = Fetcher(transport)
    ...     todo = await fetcher.fetch("https://api.example.com/todos/1", Todo)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from fetchkit.foundation.errors import classify_exception

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from fetchkit.foundation.config import HttpDefaults


@dataclass(frozen=True, slots=True)
class RawResponse:
    """Status line and body of one HTTP response."""

    status: int
    body: bytes = b""
    reason: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status <= 299


@runtime_checkable
class Transport(Protocol):
    """Protocol for HTTP GET transports."""

    async def send_get(self, url: str) -> RawResponse:
        """Send GET url. Raises TransportError if no response was received."""
        ...


class HttpxTransport:
    """Transport over httpx.AsyncClient.

    Args:
        client: Existing client to share (not closed by aclose())
        settings: HTTP defaults used when the transport builds its own client
    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None, *, settings: HttpDefaults | None = None) -> None:
        self._owns_client = client is None
        self._client = client or self._build_client(settings)

    @staticmethod
    def _build_client(settings: HttpDefaults | None) -> httpx.AsyncClient:
        if settings is None:
            from fetchkit.foundation.config import get_settings
            settings = get_settings().http
        return httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            verify=settings.verify_ssl,
            follow_redirects=settings.follow_redirects,
            limits=httpx.Limits(max_connections=settings.max_connections),
            timeout=None,  # the platform timer bounds each attempt
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def send_get(self, url: str) -> RawResponse:
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise classify_exception(e, url=url) from e
        return RawResponse(status=resp.status_code, body=resp.content, reason=resp.reason_phrase)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"HttpxTransport(owns_client={self._owns_client})"


__all__ = ["RawResponse", "Transport", "HttpxTransport"]
