"""Delay calculation helpers for the retry engine."""

import logging

from .types import BackoffStrategy, RetryConfig

logger = logging.getLogger(__name__)


class DelayCalculator:
    """Calculates the pause between consecutive attempts."""

    @staticmethod
    def growth_factor(strategy: BackoffStrategy, attempt: int) -> float:
        """
        Multiplier applied to the base delay after a failed attempt.

        Args:
            strategy: Backoff strategy
            attempt: 1-based number of the attempt that just failed

        Returns:
            Factor for ``base_delay``
        """
        if strategy is BackoffStrategy.LINEAR:
            return float(attempt)
        if strategy is BackoffStrategy.EXPONENTIAL:
            return float(2 ** (attempt - 1))
        return 1.0

    @classmethod
    def calculate_delay_ms(cls, config: RetryConfig, attempt: int) -> float:
        """
        Calculate the capped delay that precedes attempt ``attempt + 1``.

        Args:
            config: Retry configuration
            attempt: 1-based number of the attempt that just failed

        Returns:
            Delay in milliseconds
        """
        delay = min(config.max_delay, config.base_delay * cls.growth_factor(config.backoff, attempt))
        logger.debug(
            "[RetryEngine] attempt=%s strategy=%s delay=%.0fms",
            attempt,
            config.backoff.value,
            delay,
        )
        return delay


__all__ = ["DelayCalculator"]
