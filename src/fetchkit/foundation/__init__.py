"""Foundation layer: error taxonomy, Result monad, configuration."""

from .config import FetchkitSettings, clear_settings_cache, get_settings
from .errors import (
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
    classify_exception,
)

__all__ = [
    "FetchkitSettings", "get_settings", "clear_settings_cache",
    "ErrorCode", "FetchError", "TransportError", "TimedOut", "HttpStatusError",
    "DecodeError", "ProcessingError", "RetriesExhausted", "classify_exception",
    "Result", "Ok", "Err",
]
