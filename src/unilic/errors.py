"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy shared by every SDK component.

All failures that leave the transport are ``UnilicError`` instances tagged
with an ``ErrorKind``. Callers branch on ``error.kind`` instead of on
exception subclasses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .constants import ErrorCode


class ErrorKind(str, Enum):
    """High-level failure category."""

    NETWORK = "network"
    VALIDATION = "validation"
    PURCHASE = "purchase"
    LICENSE = "license"


class UnilicError(RuntimeError):
    """
    Typed SDK failure.

    Args:
        message: Human-readable reason (usually the server's ``error`` text).
        kind: Failure category.
        code: Stable machine-readable error code.
        status_code: HTTP status when a response was received.
        cause_code: Low-level connection code (``ECONNRESET``, ``ETIMEDOUT``...)
            when no response was received.
        details: Raw error envelope returned by the server, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.LICENSE,
        code: str | None = None,
        status_code: int | None = None,
        cause_code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.status_code = status_code
        self.cause_code = cause_code
        self.details = details

    @property
    def is_network(self) -> bool:
        return self.kind is ErrorKind.NETWORK

    @property
    def is_validation(self) -> bool:
        return self.kind is ErrorKind.VALIDATION

    @property
    def is_purchase(self) -> bool:
        return self.kind is ErrorKind.PURCHASE

    @property
    def is_license(self) -> bool:
        return self.kind is ErrorKind.LICENSE

    def __repr__(self) -> str:
        return (
            f"UnilicError(kind={self.kind.value!r}, code={self.code!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


def network_error(
    message: str,
    code: str = ErrorCode.NETWORK_ERROR,
    *,
    status_code: int | None = None,
    cause_code: str | None = None,
    details: Any = None,
) -> UnilicError:
    return UnilicError(
        message,
        kind=ErrorKind.NETWORK,
        code=code,
        status_code=status_code,
        cause_code=cause_code,
        details=details,
    )


def validation_error(
    message: str,
    code: str,
    *,
    status_code: int | None = None,
    details: Any = None,
) -> UnilicError:
    return UnilicError(
        message,
        kind=ErrorKind.VALIDATION,
        code=code,
        status_code=status_code,
        details=details,
    )


def purchase_error(
    message: str,
    code: str,
    *,
    status_code: int | None = None,
    details: Any = None,
) -> UnilicError:
    return UnilicError(
        message,
        kind=ErrorKind.PURCHASE,
        code=code,
        status_code=status_code,
        details=details,
    )


def license_error(
    message: str,
    code: str,
    *,
    status_code: int | None = None,
    details: Any = None,
) -> UnilicError:
    return UnilicError(
        message,
        kind=ErrorKind.LICENSE,
        code=code,
        status_code=status_code,
        details=details,
    )
