"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Python client SDK for the unilic license server.

Validates licenses over HTTP with retry and backoff, caches results with
expiry re-checked on every read, and verifies server signatures offline.

Quick start::

    from unilic import ClientConfig, LicenseClient

    client = LicenseClient(ClientConfig(base_url="https://license.example.com/api"))
    if await client.is_license_valid("ACME-ORG-2025-1A2B-3C4D-5E6F"):
        enable_pro_features()
"""

from .cache import LicenseCache, RequestCoalescer
from .client import LicenseClient
from .config import ClientConfig
from .constants import ErrorCode, ValidationReason
from .crypto import (
    CryptoProvider,
    KeySetVerification,
    SignatureVerifier,
    verify_signature,
    verify_signature_with_key_set,
)
from .errors import ErrorKind, UnilicError
from .fingerprint import DeviceFingerprint
from .http import RetryConfig, RetryExecutor, Transport, backoff_delay
from .models import (
    HealthStatus,
    KeySetEntry,
    License,
    PublicKeySet,
    ValidationRequest,
    ValidationResponse,
)
from .storage import (
    FileStorage,
    MemoryStorage,
    RedisStorage,
    SessionStorage,
    StorageAdapter,
    create_storage,
    create_storage_from_env,
)

__all__ = [
    "LicenseCache",
    "RequestCoalescer",
    "LicenseClient",
    "ClientConfig",
    "ErrorCode",
    "ValidationReason",
    "CryptoProvider",
    "KeySetVerification",
    "SignatureVerifier",
    "verify_signature",
    "verify_signature_with_key_set",
    "ErrorKind",
    "UnilicError",
    "DeviceFingerprint",
    "RetryConfig",
    "RetryExecutor",
    "Transport",
    "backoff_delay",
    "HealthStatus",
    "KeySetEntry",
    "License",
    "PublicKeySet",
    "ValidationRequest",
    "ValidationResponse",
    "FileStorage",
    "MemoryStorage",
    "RedisStorage",
    "SessionStorage",
    "StorageAdapter",
    "create_storage",
    "create_storage_from_env",
]
