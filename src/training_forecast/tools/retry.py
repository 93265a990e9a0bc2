"""Retry logic for calls to external services.

Network calls to intervals.icu and the LLM get a small, bounded number of
attempts with a fixed delay between them. After the last attempt the
original exception propagates and the caller degrades (rule-based
narrative, taper unavailable).

Usage:
    from training_forecast.tools.retry import RetryPolicy

    policy = RetryPolicy(max_attempts=3, delay_seconds=2.0)
    wellness = policy.call(client.get, "/athlete/i1/wellness")
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Exception Classifications
# ============================================================================

# Exceptions that should be retried (transient failures)
RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)

# Exceptions that should NOT be retried (permanent failures)
NON_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ValueError,
    TypeError,
    KeyError,
    AttributeError,
)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class RetryableError(Exception):
    """Explicitly mark an error as retryable.

    Wrap any exception in this to force retry behavior:
        raise RetryableError("Transient failure") from original_error
    """


class NonRetryableError(Exception):
    """Explicitly mark an error as non-retryable."""


def is_retryable(exception: Exception) -> bool:
    """Determine if an exception should be retried.

    Args:
        exception: The exception to check.

    Returns:
        True if the exception is transient and should be retried.
    """
    if isinstance(exception, RetryableError):
        return True
    if isinstance(exception, NonRetryableError):
        return False

    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exception, NON_RETRYABLE_EXCEPTIONS):
        return False

    if isinstance(exception, RETRYABLE_EXCEPTIONS):
        return True

    # Unknown exceptions: look for hints in the message
    error_msg = str(exception).lower()
    retryable_hints = ["timeout", "timed out", "connection", "temporarily", "unavailable", "network"]
    return any(hint in error_msg for hint in retryable_hints)


# ============================================================================
# Retry Policy
# ============================================================================


@dataclass
class RetryPolicy:
    """Fixed-delay retry configuration.

    Attributes:
        max_attempts: Total attempts including the first (default 3).
        delay_seconds: Pause between attempts (default 2.0).
        retryable_exceptions: If set, retry exactly these types instead of
            using is_retryable().
        sleep: Sleep function, replaceable in tests.
    """

    max_attempts: int = 3
    delay_seconds: float = 2.0
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    def should_retry(self, exception: Exception) -> bool:
        if self.retryable_exceptions:
            return isinstance(exception, self.retryable_exceptions)
        return is_retryable(exception)

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` under this policy, re-raising the last failure."""
        name = getattr(func, "__name__", "call")

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                if attempt < self.max_attempts and self.should_retry(e):
                    logger.warning(
                        f"{name} failed (attempt {attempt}/{self.max_attempts}): "
                        f"{type(e).__name__}: {e}. Retrying in {self.delay_seconds:.1f}s..."
                    )
                    if self.delay_seconds > 0:
                        self.sleep(self.delay_seconds)
                    continue

                if self.should_retry(e):
                    logger.error(f"{name} failed after {attempt} attempts: {type(e).__name__}: {e}")
                else:
                    logger.error(f"{name} failed with non-retryable error: {type(e).__name__}: {e}")
                raise

            if attempt > 1:
                logger.info(f"{name} succeeded after {attempt} attempts")
            return result

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError(f"{name} exhausted retries without a result")


__all__ = [
    "RetryPolicy",
    "RetryableError",
    "NonRetryableError",
    "is_retryable",
    "RETRYABLE_EXCEPTIONS",
    "NON_RETRYABLE_EXCEPTIONS",
    "RETRYABLE_STATUS_CODES",
]
