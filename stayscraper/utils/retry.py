"""
Retry with exponential backoff for flaky network operations.
"""

from typing import Any, Callable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from stayscraper.utils.delay import pause


def _always(exc: BaseException) -> bool:
    return True


class RetryPolicy(BaseModel):
    """Backoff settings for ``retry``, validated on construction."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(3, ge=1)
    initial_delay_ms: int = Field(1_000, ge=0)
    max_delay_ms: int = Field(30_000, ge=0)
    should_retry: Callable[[BaseException], bool] = _always

    @model_validator(mode="after")
    def _check_cap(self) -> "RetryPolicy":
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")
        return self

    def backoff_ms(self, attempt: int) -> int:
        """Wait after failed attempt number *attempt* (1-based)."""
        return min(self.initial_delay_ms * 2 ** (attempt - 1), self.max_delay_ms)


def retry(operation: Callable[[], Any], policy: Optional[RetryPolicy] = None) -> Any:
    """
    Call *operation* until it succeeds or the policy gives up.

    Returns the result of the first successful call. Re-raises the last
    exception once attempts are exhausted or ``should_retry`` declines it.
    """
    policy = policy or RetryPolicy()

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt == policy.max_attempts or not policy.should_retry(exc):
                raise
            wait = policy.backoff_ms(attempt)
            logger.warning(
                "Attempt {}/{} failed ({}). Retrying in {} ms ...",
                attempt,
                policy.max_attempts,
                exc,
                wait,
            )
            pause(wait)
