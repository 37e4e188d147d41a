"""Helper modules for the retry engine."""

from .types import DEFAULT_MAX_DELAY_MS, BackoffStrategy, RetryConfig, default_should_retry

__all__ = ["BackoffStrategy", "DEFAULT_MAX_DELAY_MS", "RetryConfig", "default_should_retry"]
