"""Generic retry of fallible async operations with configurable backoff."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from quota_probe.retry_engine import sleeper
from quota_probe.retry_engine_helpers import (
    DEFAULT_MAX_DELAY_MS,
    BackoffStrategy,
    RetryConfig,
    default_should_retry,
)
from quota_probe.retry_engine_helpers.delay_calculator import DelayCalculator

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def _notify_retry(config: RetryConfig, attempt: int, delay_ms: float) -> None:
    if config.on_retry is None:
        return
    outcome = config.on_retry(attempt, delay_ms)
    if inspect.isawaitable(outcome):
        await outcome


async def retry(operation: Callable[[], Awaitable[Optional[T]]], config: RetryConfig) -> Optional[T]:
    """
    Run ``operation`` until it succeeds or the attempt budget is spent.

    An attempt succeeds when it returns a non-None value that ``should_retry``
    accepts. A raised exception that ``should_retry`` rejects propagates at
    once; otherwise it is held and re-raised if it came from the final attempt.

    Args:
        operation: Zero-argument coroutine factory
        config: Retry configuration

    Returns:
        The successful result, or the final attempt's result (possibly None)
    """
    last_result: Optional[T] = None
    last_error: Optional[Exception] = None

    for attempt in range(1, config.attempts + 1):
        last_error = None
        try:
            last_result = await operation()
        except Exception as exc:
            if not config.should_retry(None, exc):
                raise
            logger.debug("[RetryEngine] attempt %s/%s raised %s", attempt, config.attempts, exc)
            last_result = None
            last_error = exc
        else:
            if not config.should_retry(last_result, None):
                return last_result

        if attempt < config.attempts:
            delay_ms = DelayCalculator.calculate_delay_ms(config, attempt)
            await _notify_retry(config, attempt, delay_ms)
            await sleeper.sleep(delay_ms / 1000.0)

    if last_error is not None:
        raise last_error
    return last_result


def create_retry(config: RetryConfig) -> Callable[[Callable[[], Awaitable[Optional[T]]]], Awaitable[Optional[T]]]:
    """Return a retry callable pre-bound to ``config``."""

    async def _run(operation: Callable[[], Awaitable[Optional[T]]]) -> Optional[T]:
        return await retry(operation, config)

    return _run


__all__ = [
    "BackoffStrategy",
    "DEFAULT_MAX_DELAY_MS",
    "RetryConfig",
    "create_retry",
    "default_should_retry",
    "retry",
]
