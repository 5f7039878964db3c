"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: http/retry.py.
"""

from __future__ import annotations

import asyncio
import errno
import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from ..errors import UnilicError
from .backoff import backoff_delay

T = TypeVar("T")

OnRetry = Callable[[BaseException, int], None]

DEFAULT_RETRYABLE_STATUS_CODES: tuple[int, ...] = (408, 429, 500, 502, 503, 504)
DEFAULT_RETRYABLE_ERRORS: tuple[str, ...] = (
    "ECONNRESET",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ENETUNREACH",
    "ECONNREFUSED",
)

_ERRNO_CODES: dict[int, str] = {
    errno.ECONNRESET: "ECONNRESET",
    errno.ETIMEDOUT: "ETIMEDOUT",
    errno.ENETUNREACH: "ENETUNREACH",
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.EHOSTUNREACH: "EHOSTUNREACH",
    errno.ECONNABORTED: "ECONNABORTED",
    errno.EPIPE: "EPIPE",
}


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Retry semantics for one transport instance."""

    max_retries: int = 3
    initial_delay_s: float = 1.0
    max_delay_s: float = 30.0
    backoff_multiplier: float = 2.0
    retryable_status_codes: tuple[int, ...] = DEFAULT_RETRYABLE_STATUS_CODES
    retryable_errors: tuple[str, ...] = DEFAULT_RETRYABLE_ERRORS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_s < 0:
            raise ValueError("initial_delay_s must be >= 0")
        if self.max_delay_s < 0:
            raise ValueError("max_delay_s must be >= 0")

    def with_max_retries(self, max_retries: int) -> "RetryConfig":
        return replace(self, max_retries=max_retries)


def connection_code(error: BaseException) -> str | None:
    """Map a low-level exception onto a connection error code."""
    if isinstance(error, UnilicError):
        return error.cause_code
    if isinstance(error, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return "ETIMEDOUT"
    if isinstance(error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(error, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(error, OSError) and error.errno is not None:
        return _ERRNO_CODES.get(error.errno)
    code = getattr(error, "code", None)
    return code if isinstance(code, str) else None


def _status_of(error: BaseException) -> int | None:
    if isinstance(error, UnilicError):
        return error.status_code
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def is_retryable_error(error: BaseException, config: RetryConfig) -> bool:
    """Return whether ``error`` is transient under ``config``."""
    status = _status_of(error)
    if status is not None and status in config.retryable_status_codes:
        return True

    code = connection_code(error)
    if code is not None and code in config.retryable_errors:
        return True

    message = str(error).lower()
    return "timeout" in message or "timed out" in message


class RetryExecutor:
    """
    Run an async operation with bounded retries.

    Args:
        config: Retry budget and retryability rules.
        sleep: Awaitable sleep used between attempts.
        rand: Jitter source for the backoff policy.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rand: Callable[[], float] | None = None,
    ) -> None:
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._rand = rand

    @property
    def config(self) -> RetryConfig:
        return self._config

    def should_retry(self, error: BaseException) -> bool:
        return is_retryable_error(error, self._config)

    def get_delay(self, attempt: int) -> float:
        if self._rand is None:
            return backoff_delay(attempt, self._config)
        return backoff_delay(attempt, self._config, rand=self._rand)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: OnRetry | None = None,
    ) -> T:
        """
        Attempt ``operation`` up to ``max_retries + 1`` times.

        Non-retryable errors propagate on first occurrence; the last error
        propagates once the budget is spent. ``on_retry(error, n)`` fires
        before retry ``n`` (1-based), never before the first attempt.
        """
        retries = self._config.max_retries
        for attempt in range(retries + 1):
            try:
                return await operation()
            except Exception as error:
                if attempt >= retries or not self.should_retry(error):
                    raise
                if on_retry is not None:
                    on_retry(error, attempt + 1)
                await self._sleep(self.get_delay(attempt))
        raise AssertionError("unreachable")  # pragma: no cover
