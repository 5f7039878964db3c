"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: http/__init__.py.
"""

from .backoff import backoff_delay
from .forms import FormFile, encode_multipart
from .retry import (
    DEFAULT_RETRYABLE_ERRORS,
    DEFAULT_RETRYABLE_STATUS_CODES,
    RetryConfig,
    RetryExecutor,
    connection_code,
    is_retryable_error,
)
from .transport import (
    ConnectionCheck,
    HttpRequest,
    HttpResponse,
    Sender,
    Transport,
    classify_failure,
    classify_response,
    urllib_send,
)

__all__ = [
    "backoff_delay",
    "FormFile",
    "encode_multipart",
    "DEFAULT_RETRYABLE_ERRORS",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "RetryConfig",
    "RetryExecutor",
    "connection_code",
    "is_retryable_error",
    "ConnectionCheck",
    "HttpRequest",
    "HttpResponse",
    "Sender",
    "Transport",
    "classify_failure",
    "classify_response",
    "urllib_send",
]
