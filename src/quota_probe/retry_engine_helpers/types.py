"""Type definitions and configuration for the retry engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

DEFAULT_MAX_DELAY_MS = 30_000.0

RetryPredicate = Callable[[Optional[Any], Optional[BaseException]], bool]
RetryListener = Callable[[int, float], Any]


class BackoffStrategy(Enum):
    """How the delay grows between attempts"""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


def default_should_retry(result: Optional[Any], error: Optional[BaseException]) -> bool:
    """Retry while the operation yields nothing (errors count as nothing)."""
    return result is None


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for a retry sequence; delays are in milliseconds"""

    attempts: int
    base_delay: float
    max_delay: float = DEFAULT_MAX_DELAY_MS
    backoff: BackoffStrategy = BackoffStrategy.FIXED
    should_retry: RetryPredicate = default_should_retry
    on_retry: Optional[RetryListener] = None

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1 (got {self.attempts})")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative (got {self.base_delay})")
        if self.max_delay < 0:
            raise ValueError(f"max_delay must be non-negative (got {self.max_delay})")
        if not isinstance(self.backoff, BackoffStrategy):
            raise ValueError(f"Unknown backoff strategy: {self.backoff!r}")


__all__ = [
    "BackoffStrategy",
    "DEFAULT_MAX_DELAY_MS",
    "RetryConfig",
    "RetryListener",
    "RetryPredicate",
    "default_should_retry",
]
