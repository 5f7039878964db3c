from __future__ import annotations

import asyncio
import random

import pytest

from unilic.constants import ErrorCode
from unilic.errors import ErrorKind, UnilicError, license_error, network_error
from unilic.http import (
    RetryConfig,
    RetryExecutor,
    backoff_delay,
    connection_code,
    is_retryable_error,
)


def run_async(coro):
    return asyncio.run(coro)


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _server_error(status: int = 503) -> UnilicError:
    return network_error("unavailable", ErrorCode.SERVER_ERROR, status_code=status)


def test_backoff_doubles_until_capped():
    config = RetryConfig()
    assert backoff_delay(0, config, rand=lambda: 0.0) == pytest.approx(1.0)
    assert backoff_delay(1, config, rand=lambda: 0.0) == pytest.approx(2.0)
    assert backoff_delay(2, config, rand=lambda: 0.0) == pytest.approx(4.0)
    assert backoff_delay(10, config, rand=lambda: 0.0) == pytest.approx(30.0)


def test_backoff_jitter_stays_within_thirty_percent():
    config = RetryConfig()
    assert backoff_delay(0, config, rand=lambda: 1.0) == pytest.approx(1.3)
    assert backoff_delay(10, config, rand=lambda: 1.0) == pytest.approx(39.0)

    rng = random.Random(7)
    for attempt in range(8):
        base = min(2.0**attempt, 30.0)
        delay = backoff_delay(attempt, config, rand=rng.random)
        assert base <= delay <= base * 1.3


def test_retry_config_rejects_negative_budget():
    with pytest.raises(ValueError):
        RetryConfig(max_retries=-1)


def test_retryable_classification():
    config = RetryConfig()
    assert is_retryable_error(_server_error(503), config)
    assert is_retryable_error(_server_error(429), config)
    assert not is_retryable_error(
        license_error("nope", ErrorCode.INVALID_LICENSE, status_code=404), config
    )
    assert is_retryable_error(ConnectionResetError(), config)
    assert is_retryable_error(ConnectionRefusedError(), config)
    assert is_retryable_error(RuntimeError("socket timed out"), config)
    assert not is_retryable_error(ValueError("bad input"), config)


def test_connection_code_prefers_cause_code_on_sdk_errors():
    error = network_error("down", ErrorCode.CONNECTION_REFUSED, cause_code="ECONNRESET")
    assert connection_code(error) == "ECONNRESET"
    assert connection_code(TimeoutError()) == "ETIMEDOUT"
    assert error.kind is ErrorKind.NETWORK


def test_executor_retries_transient_failures_then_succeeds():
    async def scenario() -> None:
        sleep = _RecordingSleep()
        executor = RetryExecutor(RetryConfig(max_retries=3), sleep=sleep, rand=lambda: 0.0)
        calls = {"n": 0}
        seen: list[int] = []

        async def operation() -> str:
            calls["n"] += 1
            if calls["n"] <= 2:
                raise _server_error()
            return "ok"

        result = await executor.execute(operation, lambda _err, n: seen.append(n))
        assert result == "ok"
        assert calls["n"] == 3
        assert seen == [1, 2]
        assert sleep.delays == [1.0, 2.0]

    run_async(scenario())


def test_executor_does_not_retry_non_retryable_errors():
    async def scenario() -> None:
        sleep = _RecordingSleep()
        executor = RetryExecutor(RetryConfig(max_retries=3), sleep=sleep)
        calls = {"n": 0}

        async def operation() -> None:
            calls["n"] += 1
            raise license_error("bad request", ErrorCode.NETWORK_ERROR, status_code=400)

        seen: list[int] = []
        with pytest.raises(UnilicError) as exc_info:
            await executor.execute(operation, lambda _err, n: seen.append(n))
        assert exc_info.value.status_code == 400
        assert calls["n"] == 1
        assert seen == []
        assert sleep.delays == []

    run_async(scenario())


def test_executor_raises_last_error_after_budget_is_spent():
    async def scenario() -> None:
        sleep = _RecordingSleep()
        executor = RetryExecutor(RetryConfig(max_retries=2), sleep=sleep, rand=lambda: 0.0)
        calls = {"n": 0}

        async def operation() -> None:
            calls["n"] += 1
            raise _server_error((502, 503, 504)[calls["n"] - 1])

        with pytest.raises(UnilicError) as exc_info:
            await executor.execute(operation)
        assert calls["n"] == 3
        assert exc_info.value.status_code == 504
        assert len(sleep.delays) == 2

    run_async(scenario())


def test_executor_with_zero_retries_attempts_once():
    async def scenario() -> None:
        sleep = _RecordingSleep()
        executor = RetryExecutor(RetryConfig(max_retries=0), sleep=sleep)
        calls = {"n": 0}

        async def operation() -> None:
            calls["n"] += 1
            raise _server_error()

        with pytest.raises(UnilicError):
            await executor.execute(operation)
        assert calls["n"] == 1
        assert sleep.delays == []

    run_async(scenario())


def test_backoff_stays_capped_for_very_large_attempts():
    config = RetryConfig()
    assert backoff_delay(5000, config, rand=lambda: 0.0) == pytest.approx(30.0)
    assert backoff_delay(5000, config, rand=lambda: 1.0) == pytest.approx(39.0)
    int_growth = RetryConfig(backoff_multiplier=2)
    assert backoff_delay(5000, int_growth, rand=lambda: 0.0) == pytest.approx(30.0)


def test_executor_with_huge_budget_raises_the_operation_error():
    async def scenario() -> None:
        sleep = _RecordingSleep()
        executor = RetryExecutor(RetryConfig(max_retries=1100), sleep=sleep)
        calls = {"n": 0}

        async def operation() -> None:
            calls["n"] += 1
            raise TimeoutError("timed out")

        with pytest.raises(TimeoutError):
            await executor.execute(operation)
        assert calls["n"] == 1101
        assert max(sleep.delays) <= 30.0 * 1.3

    run_async(scenario())
