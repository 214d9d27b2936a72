"""Error taxonomy and Result monad for fetchkit.

- ErrorCode: Standard codes for fetch failures
- FetchError and subclasses: TransportError, TimedOut, HttpStatusError,
  DecodeError, ProcessingError, RetriesExhausted
- Result/Ok/Err: Typed success/failure returned by every fetch
"""

from .errors import (
    DecodeError,
    ErrorCode,
    FetchError,
    HttpStatusError,
    ProcessingError,
    RetriesExhausted,
    TimedOut,
    TransportError,
    classify_exception,
)
from .result import Err, Ok, Result

__all__ = [
    # Codes & taxonomy
    "ErrorCode", "FetchError", "TransportError", "TimedOut", "HttpStatusError",
    "DecodeError", "ProcessingError", "RetriesExhausted", "classify_exception",
    # Result monad
    "Result", "Ok", "Err",
]
