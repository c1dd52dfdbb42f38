"""
Job retry policy.

Decides whether a failed ingestion job is requeued and how long to wait
before doing so.

Dependencies: None
System role: Retry bookkeeping shared by the worker pool and the monitor
"""

from dataclasses import dataclass, field
from typing import Callable

from docsearch.configs.ingestion import IngestionSettings


def exponential_backoff(base: float = 1.0, cap: float = 30.0) -> Callable[[int], float]:
    """
    Backoff of base * 2^(retry_count - 1) seconds, capped.

    Args:
        base: Delay before the first retry
        cap: Maximum delay
    """

    def _delay(retry_count: int) -> float:
        if retry_count <= 0 or base <= 0:
            return 0.0
        return min(cap, base * (2 ** (retry_count - 1)))

    return _delay


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded requeue policy.

    retry_count is the number of failures so far (previous + 1 after each
    failure). A job is requeued while retry_count <= max_retries, so a
    document gets one initial attempt plus max_retries retries.
    """

    max_retries: int = 3
    backoff: Callable[[int], float] = field(default_factory=exponential_backoff)

    @classmethod
    def from_settings(cls, settings: IngestionSettings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            backoff=exponential_backoff(settings.retry_backoff_base, settings.retry_backoff_max),
        )

    def should_retry(self, retry_count: int) -> bool:
        return retry_count <= self.max_retries

    def delay_for(self, retry_count: int) -> float:
        """Seconds to wait before requeueing with this retry count."""
        return max(0.0, float(self.backoff(retry_count)))
