"""Bounded retry with exponential backoff and jitter for provider reads.

Only read operations (list, get) go through here. Creating or deleting a
booking is never retried.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from booking_engine.application.exceptions import ProviderTimeout, UnknownProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 8.0
    jitter_factor: float = 0.3

    def calculate_backoff(self, attempt_number: int) -> float:
        """Delay before attempt_number (1-indexed, so 2 = first retry)."""
        if attempt_number <= 1:
            return 0.0
        delay = min(self.base_delay_seconds * (2 ** (attempt_number - 2)), self.max_delay_seconds)
        jitter_range = delay * self.jitter_factor
        return max(0.0, delay - jitter_range + random.random() * 2 * jitter_range)


def is_retryable(error: Exception) -> bool:
    if isinstance(error, ProviderTimeout):
        return True
    if isinstance(error, UnknownProviderError):
        return error.transient or error.status_code in RETRYABLE_STATUS_CODES
    return False


def retry_read(
    operation: Callable[[], T],
    policy: RetryPolicy,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    attempt = 1
    while True:
        try:
            return operation()
        except Exception as e:
            if attempt >= policy.max_attempts or not is_retryable(e):
                raise
            attempt += 1
            delay = policy.calculate_backoff(attempt)
            logger.warning(
                "Retrying provider read",
                extra={"operation": description, "attempt": attempt, "error": str(e)},
            )
            sleep(delay)
