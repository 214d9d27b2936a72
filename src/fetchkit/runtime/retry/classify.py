"""Classification of a single attempt's outcome.

| Outcome                           | Class                         |
|-----------------------------------|-------------------------------|
| 2xx, body decodes                 | Success(value)                |
| 5xx                               | Retryable(HttpStatusError)    |
| 4xx                               | Terminal(HttpStatusError)     |
| other non-2xx (1xx, 3xx)          | Terminal(HttpStatusError)     |
| transport failure                 | Retryable(TransportError)     |
| attempt timeout                   | Retryable(TimedOut)           |
| 2xx, body fails to decode         | Terminal(DecodeError)         |
| 2xx, decoder raises anything else | Terminal(DecodeError)         |

A 4xx is a problem with the request itself and will not heal on retry; 5xx,
network and timeout failures often do. `extra_retryable` can opt specific
statuses (e.g. 429) into retrying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeAlias, TypeVar

from fetchkit.foundation.errors import DecodeError, FetchError, HttpStatusError, TimedOut, TransportError

if TYPE_CHECKING:
    from fetchkit.io import Decoder, RawResponse

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Retryable:
    reason: FetchError


@dataclass(frozen=True, slots=True)
class Terminal:
    reason: FetchError


ClassifiedOutcome: TypeAlias = "Success[T] | Retryable | Terminal"


@dataclass(frozen=True, slots=True)
class ErrorClassifier:
    """Label one attempt Success, Retryable or Terminal.

    Attributes:
        decoder: Parses 2xx bodies into the requested shape
        extra_retryable: Non-5xx statuses to treat as retryable
    """

    decoder: Decoder
    extra_retryable: frozenset[int] = field(default_factory=frozenset)

    def classify(
        self,
        outcome: RawResponse | FetchError,
        shape: type[T],
        *,
        url: str | None = None,
    ) -> Success[T] | Retryable | Terminal:
        if isinstance(outcome, FetchError):
            return self.classify_error(outcome)
        return self.classify_response(outcome, shape, url=url)

    def classify_error(self, error: FetchError) -> Retryable | Terminal:
        match error:
            case TransportError() | TimedOut():
                return Retryable(error)
            case HttpStatusError() if error.is_server_error or error.status in self.extra_retryable:
                return Retryable(error)
            case _:
                return Terminal(error)

    def classify_response(
        self, response: RawResponse, shape: type[T], *, url: str | None = None,
    ) -> Success[T] | Retryable | Terminal:
        if not response.is_success:
            return self.classify_error(
                HttpStatusError(response.status, response.body, reason=response.reason, url=url)
            )
        try:
            return Success(self.decoder.decode(response.body, shape))
        except FetchError as e:
            return Terminal(e.with_url(url) if url and e.url is None else e)
        except Exception as e:  # any other decoder failure is a DecodeError
            err = DecodeError(f"Decoder failed: {type(e).__name__}: {e}", url=url)
            err.__cause__ = e
            return Terminal(err)
