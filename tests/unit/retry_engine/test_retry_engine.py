import pytest

from quota_probe.retry_engine import BackoffStrategy, RetryConfig, create_retry, retry
from quota_probe.retry_engine_helpers.delay_calculator import DelayCalculator


def _returns_none_then(value, none_count):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= none_count:
            return None
        return value

    return operation, calls


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("none_count", "attempts", "expected", "expected_calls"),
    [
        (0, 3, "ok", 1),
        (2, 3, "ok", 3),
        (3, 3, None, 3),
        (5, 2, None, 2),
    ],
)
async def test_retry_stops_at_first_value_or_budget(no_retry_sleep, none_count, attempts, expected, expected_calls):
    operation, calls = _returns_none_then("ok", none_count)

    result = await retry(operation, RetryConfig(attempts=attempts, base_delay=10))

    assert result == expected
    assert calls["count"] == expected_calls


@pytest.mark.asyncio
async def test_exponential_backoff_delays(no_retry_sleep):
    observed = []
    operation, _ = _returns_none_then("never", 10)

    config = RetryConfig(
        attempts=4,
        base_delay=100,
        backoff=BackoffStrategy.EXPONENTIAL,
        on_retry=lambda attempt, delay: observed.append((attempt, delay)),
    )
    assert await retry(operation, config) is None

    assert observed == [(1, 100), (2, 200), (3, 400)]
    # No sleep after the final attempt
    assert no_retry_sleep == [0.1, 0.2, 0.4]


@pytest.mark.asyncio
async def test_backoff_is_capped_by_max_delay(no_retry_sleep):
    observed = []
    operation, _ = _returns_none_then("never", 10)

    config = RetryConfig(
        attempts=5,
        base_delay=100,
        max_delay=250,
        backoff=BackoffStrategy.EXPONENTIAL,
        on_retry=lambda _attempt, delay: observed.append(delay),
    )
    await retry(operation, config)

    assert observed == [100, 200, 250, 250]


def test_linear_and_fixed_growth():
    linear = RetryConfig(attempts=3, base_delay=50, backoff=BackoffStrategy.LINEAR)
    fixed = RetryConfig(attempts=3, base_delay=50)

    assert [DelayCalculator.calculate_delay_ms(linear, k) for k in (1, 2, 3)] == [50, 100, 150]
    assert [DelayCalculator.calculate_delay_ms(fixed, k) for k in (1, 2, 3)] == [50, 50, 50]


@pytest.mark.asyncio
async def test_error_is_retried_then_reraised(no_retry_sleep):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        raise RuntimeError(f"boom {calls['count']}")

    with pytest.raises(RuntimeError, match="boom 3"):
        await retry(operation, RetryConfig(attempts=3, base_delay=0))
    assert calls["count"] == 3


@pytest.mark.asyncio
async def test_error_followed_by_success(no_retry_sleep):
    outcomes = [ValueError("transient"), "value"]

    async def operation():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert await retry(operation, RetryConfig(attempts=2, base_delay=0)) == "value"


@pytest.mark.asyncio
async def test_predicate_rejecting_error_propagates_immediately(no_retry_sleep):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        raise KeyError("fatal")

    config = RetryConfig(attempts=5, base_delay=0, should_retry=lambda result, error: error is None and result is None)
    with pytest.raises(KeyError):
        await retry(operation, config)
    assert calls["count"] == 1
    assert no_retry_sleep == []


@pytest.mark.asyncio
async def test_predicate_can_end_sequence_with_none(no_retry_sleep):
    operation, calls = _returns_none_then("late", 3)

    config = RetryConfig(attempts=5, base_delay=0, should_retry=lambda result, error: False)
    assert await retry(operation, config) is None
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_predicate_can_reject_values(no_retry_sleep):
    values = [1, 2, 3]

    async def operation():
        return values.pop(0)

    config = RetryConfig(attempts=3, base_delay=0, should_retry=lambda result, error: result is None or result < 2)
    assert await retry(operation, config) == 2


@pytest.mark.asyncio
async def test_create_retry_binds_config(no_retry_sleep):
    runner = create_retry(RetryConfig(attempts=2, base_delay=5))
    operation, calls = _returns_none_then("bound", 1)

    assert await runner(operation) == "bound"
    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_async_on_retry_is_awaited(no_retry_sleep):
    seen = []

    async def on_retry(attempt, delay):
        seen.append(attempt)

    operation, _ = _returns_none_then("x", 2)
    await retry(operation, RetryConfig(attempts=3, base_delay=1, on_retry=on_retry))

    assert seen == [1, 2]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"attempts": 0, "base_delay": 10},
        {"attempts": 1, "base_delay": -1},
        {"attempts": 1, "base_delay": 1, "max_delay": -5},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryConfig(**kwargs)
