"""Retry configuration, backoff and outcome classification.

Example:
    >>> from fetchkit.runtime.retry import RetrySettings, BackoffPolicy
    >>> settings = RetrySettings().with_max_retries(2).with_base_backoff(0.5)
    >>> settings.backoff().schedule(settings.max_retries)
    (0.5, 1.0)
"""

from .backoff import MAX_EXPONENT, Backoff, BackoffPolicy
from .classify import ClassifiedOutcome, ErrorClassifier, Retryable, Success, Terminal
from .settings import DEFAULT_RETRY_SETTINGS, RetrySettings

__all__ = [
    # Backoff
    "Backoff",
    "BackoffPolicy",
    "MAX_EXPONENT",
    # Settings
    "RetrySettings",
    "DEFAULT_RETRY_SETTINGS",
    # Classification
    "ErrorClassifier",
    "ClassifiedOutcome",
    "Success",
    "Retryable",
    "Terminal",
]
