"""Bounded retry for transient provider failures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from netcup_acme.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ``attempts`` times in total, sleeping ``delay * attempt`` seconds in between."""

    attempts: int = 3
    delay: float = 2.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"Retry attempts must be at least 1, got: {self.attempts}")
        if self.delay < 0:
            raise ValueError(f"Retry delay must not be negative, got: {self.delay}")


NO_RETRY = RetryPolicy(attempts=1, delay=0)


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying only on TransportError.

    Any other exception propagates immediately. The last TransportError is
    re-raised once the policy is exhausted.
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            return operation()
        except TransportError as exc:
            if attempt == policy.attempts:
                raise
            wait = policy.delay * attempt
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt,
                policy.attempts,
                exc,
                wait,
            )
            sleep(wait)
    raise AssertionError("unreachable")
