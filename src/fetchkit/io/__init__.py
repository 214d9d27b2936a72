"""External collaborators: HTTP transport and body decoding."""

from .decode import Decoder, JsonDecoder
from .http import HttpxTransport, RawResponse, Transport

__all__ = ["Transport", "RawResponse", "HttpxTransport", "Decoder", "JsonDecoder"]
