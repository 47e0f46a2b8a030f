"""Linear retry backoff for step calls."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import StepflowConfig
from ..options import ExecutionOptions


@dataclass
class RetryPolicy:
    retries: int = 0
    backoff_seconds: float = 1.0

    @property
    def attempts(self) -> int:
        return self.retries + 1

    def has_attempts_left(self, attempt: int) -> bool:
        return attempt < self.retries

    def delay_for(self, attempt: int) -> float:
        """Delay after the zero-based ``attempt`` failed."""
        return (attempt + 1) * self.backoff_seconds


def build_retry_policy(options: ExecutionOptions, config: StepflowConfig) -> RetryPolicy:
    return RetryPolicy(
        retries=options.retry,
        backoff_seconds=config.backoff_seconds,
    )
