# openrouter_client/retry/policy.py
"""
Bounded retry with exponential backoff for request/response exchanges.

State machine
-------------
Attempting(n) → Success       the operation returned a value.
Attempting(n) → Attempting(n+1)  the failure was retryable and budget remains.
Attempting(n) → GivenUp       the failure was not retryable (re-raised as is),
                              or the budget is spent (MaxRetriesExceeded).

Classification
--------------
  NetworkError                    → retryable
  HTTPStatusError, status >= 500  → retryable
  HTTPStatusError, status == 429  → retryable, waits per rate-limit headers
  HTTPStatusError, other 4xx      → raised immediately
  anything else                   → raised immediately

Attempts are strictly sequential. Each call to run() owns its own RetryState,
so one policy instance can be shared by any number of concurrent calls.
"""

from __future__ import annotations

import asyncio
import math
import random
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from ..constants import (
    DEFAULT_BACKOFF_MS,
    DEFAULT_MAX_ATTEMPTS,
    HEADER_RATELIMIT_RESET,
    HEADER_RETRY_AFTER,
    RATE_LIMIT_FALLBACK_SECONDS,
    RATE_LIMIT_MIN_SECONDS,
)
from ..exceptions import HTTPStatusError, MaxRetriesExceeded, NetworkError

if TYPE_CHECKING:
    from ..config import RetryConfig

T = TypeVar("T")

logger = structlog.get_logger(__name__)


@dataclass
class RetryState:
    """Bookkeeping for one logical call. Never shared, never persisted."""

    attempt: int = 0
    last_error: Exception | None = None
    delay_s: float = 0.0


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None


def _finite_float(text: str) -> float | None:
    """Parse a numeric header value; None when it is not a finite number."""
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class RetryPolicy:
    """
    Decides whether a failed exchange is retried, how long to wait, and
    when to give up.

    Parameters
    ----------
    max_attempts:
        Total attempts including the first one.
    base_delay_ms:
        Base of the exponential backoff and upper bound of the jitter.
    rand:
        ``rand(a, b)`` returning a float in [a, b]. Injectable for tests.
    sleep:
        Awaitable sleep taking seconds. Injectable for tests.
    clock:
        Returns the current epoch time in seconds. Used for rate-limit
        headers that carry absolute times.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BACKOFF_MS,
        *,
        rand: Callable[[float, float], float] = random.uniform,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self._rand = rand
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: "RetryConfig", **kwargs: Any) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay_ms=config.backoff_ms,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def is_retryable(self, error: Exception) -> bool:
        if isinstance(error, NetworkError):
            return True
        if isinstance(error, HTTPStatusError):
            return error.status_code >= 500 or error.status_code == 429
        return False

    def is_rate_limited(self, error: Exception) -> bool:
        return isinstance(error, HTTPStatusError) and error.status_code == 429

    # ------------------------------------------------------------------
    # Delays (seconds)
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        """base * 2^(attempt-1) + uniform(0, base), for attempt >= 1."""
        base_s = self.base_delay_ms / 1000
        return base_s * (2 ** (attempt - 1)) + self._rand(0, base_s)

    def rate_limit_delay(self, error: Exception) -> float:
        """
        Wait requested by a 429 response.

        Retry-After (delta seconds or HTTP date) wins over X-RateLimit-Reset
        (absolute epoch seconds). Values that do not parse to a finite number
        are skipped. Without a usable header, wait one second.
        """
        headers = getattr(error, "headers", None) or {}

        retry_after = _header(headers, HEADER_RETRY_AFTER)
        if retry_after:
            retry_after = retry_after.strip()
            seconds = _finite_float(retry_after)
            if seconds is not None:
                return max(RATE_LIMIT_MIN_SECONDS, seconds)
            try:
                retry_at = parsedate_to_datetime(retry_after).timestamp()
            except (TypeError, ValueError):
                retry_at = None
            if retry_at is not None:
                return max(RATE_LIMIT_MIN_SECONDS, retry_at - self._clock())

        reset = _header(headers, HEADER_RATELIMIT_RESET)
        if reset:
            reset_at = _finite_float(reset)
            if reset_at is not None:
                return max(RATE_LIMIT_MIN_SECONDS, reset_at - self._clock())

        return RATE_LIMIT_FALLBACK_SECONDS

    def delay_for(self, attempt: int, error: Exception) -> float:
        # A rate-limit wait replaces the exponential backoff.
        if self.is_rate_limited(error):
            return self.rate_limit_delay(error)
        return self.backoff_delay(attempt)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``operation()`` until it succeeds or the policy gives up.

        Raises
        ------
        MaxRetriesExceeded
            After ``max_attempts`` retryable failures; wraps the last one.
        Exception
            Any non-retryable failure, unchanged.
        """
        state = RetryState()
        while True:
            try:
                return await operation()
            except Exception as exc:
                state.attempt += 1
                state.last_error = exc

                if not self.is_retryable(exc):
                    logger.debug(
                        "request_failed_not_retryable",
                        attempt=state.attempt,
                        error_type=type(exc).__name__,
                        status_code=getattr(exc, "status_code", None),
                    )
                    raise

                if state.attempt >= self.max_attempts:
                    logger.warning(
                        "request_gave_up",
                        attempts=state.attempt,
                        error_type=type(exc).__name__,
                        status_code=getattr(exc, "status_code", None),
                    )
                    raise MaxRetriesExceeded(self.max_attempts, exc) from exc

                state.delay_s = self.delay_for(state.attempt, exc)
                logger.info(
                    "request_retry",
                    attempt=state.attempt,
                    max_attempts=self.max_attempts,
                    delay_s=round(state.delay_s, 3),
                    error_type=type(exc).__name__,
                    status_code=getattr(exc, "status_code", None),
                )
                await self._sleep(state.delay_s)
