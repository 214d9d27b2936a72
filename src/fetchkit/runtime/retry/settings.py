"""Immutable retry configuration with a functional builder.

Each `with_*` method returns a new validated RetrySettings; the receiver is
never changed, so one base configuration can be shared by many Fetchers and
overridden per Fetcher.

Example:
    >>> base = RetrySettings()
    >>> fast = base.with_request_timeout(2.0).with_base_backoff(0.1)
    >>> (base.request_timeout, fast.request_timeout)
    (10.0, 2.0)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveFloat

from .backoff import BackoffPolicy

if TYPE_CHECKING:
    from fetchkit.foundation.config import FetchkitSettings


class RetrySettings(BaseModel):
    """Retry budget, per-attempt timeout and backoff base.

    Attributes:
        max_retries: Retries after the initial attempt (0 = single attempt)
        request_timeout: Seconds allowed per attempt
        base_backoff: Seconds to wait before the first retry
        max_delay: Optional clamp on any single backoff delay
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        revalidate_instances="never",
        json_schema_extra={
            "title": "Retry Settings",
            "examples": [{"max_retries": 3, "request_timeout": 10.0, "base_backoff": 2.0}],
        },
    )

    max_retries: NonNegativeInt = 3
    request_timeout: Annotated[PositiveFloat, Field(description="Per-attempt timeout in seconds")] = 10.0
    base_backoff: Annotated[PositiveFloat, Field(description="First retry delay in seconds")] = 2.0
    max_delay: PositiveFloat | None = None

    @property
    def max_attempts(self) -> int:
        """Initial attempt plus every retry."""
        return self.max_retries + 1

    def _replace(self, **changes: object) -> RetrySettings:
        # model_copy skips validation; rebuild instead so the invariants hold
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_max_retries(self, max_retries: int) -> RetrySettings:
        return self._replace(max_retries=max_retries)

    def with_request_timeout(self, timeout: float) -> RetrySettings:
        return self._replace(request_timeout=timeout)

    def with_base_backoff(self, backoff: float) -> RetrySettings:
        return self._replace(base_backoff=backoff)

    def with_max_delay(self, max_delay: float | None) -> RetrySettings:
        return self._replace(max_delay=max_delay)

    def backoff(self) -> BackoffPolicy:
        """Backoff policy derived from these settings."""
        return BackoffPolicy(base=self.base_backoff, max_delay=self.max_delay)

    @classmethod
    def from_env(cls, settings: FetchkitSettings | None = None) -> RetrySettings:
        """Build from the FETCHKIT_RETRY_* section of the process settings."""
        if settings is None:
            from fetchkit.foundation.config import get_settings
            settings = get_settings()
        r = settings.retry
        return cls(
            max_retries=r.max_retries,
            request_timeout=r.request_timeout,
            base_backoff=r.base_backoff,
            max_delay=r.max_delay,
        )


DEFAULT_RETRY_SETTINGS = RetrySettings()
