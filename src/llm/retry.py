"""Retry policy for calls to the remote AI judge."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRYABLE_MESSAGES = [
    "overloaded",
    "rate limit",
    "too many requests",
    "service unavailable",
    "internal error",
    "resource exhausted",
]


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_retryable_error(exc: BaseException) -> bool:
    """Rate-limit, overload and server-error signals are worth retrying."""
    status = _status_code(exc)
    if status in RETRYABLE_STATUS_CODES:
        return True
    message = str(exc).lower()
    return any(text in message for text in RETRYABLE_MESSAGES)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt count, exponential base delay and retryable-error predicate."""

    max_attempts: int = 3
    base_delay: float = 2.0
    is_retryable: Callable[[BaseException], bool] = field(default=is_retryable_error)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.base_delay * 2 ** (attempt - 1)


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` until it succeeds or the policy gives up.

    Non-retryable errors and the error of the final attempt propagate.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return fn()
        except Exception as e:
            if attempt == policy.max_attempts or not policy.is_retryable(e):
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.1fs",
                attempt, policy.max_attempts, e, delay,
            )
            sleep(delay)
