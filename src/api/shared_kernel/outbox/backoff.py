"""Retry backoff policy for failed outbox events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff: ``base_delay * multiplier ** (n - 1)``, capped.

    The policy is a pure function of the retry count so it can be tested
    without a record store.

    Attributes:
        base_delay: Delay after the first failure
        multiplier: Growth factor per additional failure (>= 1)
        max_delay: Upper bound on any computed delay
    """

    base_delay: timedelta = timedelta(minutes=1)
    multiplier: float = 5.0
    max_delay: timedelta = timedelta(hours=1)

    def __post_init__(self) -> None:
        if self.base_delay <= timedelta(0):
            raise ValueError("base_delay must be positive")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")

    def delay_for(self, retry_count: int) -> timedelta:
        """Compute the delay before the given retry.

        Args:
            retry_count: Number of failures recorded so far (values below
                1 are treated as 1)

        Returns:
            The delay, never larger than max_delay
        """
        attempt = max(retry_count, 1)
        base_seconds = self.base_delay.total_seconds()
        cap_seconds = self.max_delay.total_seconds()

        # Stop multiplying once the cap is reached to avoid float overflow
        seconds = base_seconds
        for _ in range(attempt - 1):
            seconds *= self.multiplier
            if seconds >= cap_seconds:
                return self.max_delay

        return timedelta(seconds=min(seconds, cap_seconds))
