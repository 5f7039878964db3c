"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Constants shared across the SDK.
"""

from __future__ import annotations

from typing import Literal

LicenseTier = Literal["standard", "pro", "enterprise"]
LicenseStatus = Literal["pending", "active", "expired", "revoked", "suspended"]

TIER_HIERARCHY: dict[str, int] = {
    "standard": 1,
    "pro": 2,
    "enterprise": 3,
}

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_RETRIES = 3
DEFAULT_CACHE_TTL_S = 3600.0
DEFAULT_CACHE_ENABLED = True
DEFAULT_STORAGE_PREFIX = "uls_"

SECONDS_PER_DAY = 86_400


class ErrorCode:
    """Machine-readable error codes carried by ``UnilicError.code``."""

    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"

    INVALID_LICENSE = "INVALID_LICENSE"
    LICENSE_EXPIRED = "LICENSE_EXPIRED"
    LICENSE_REVOKED = "LICENSE_REVOKED"
    INVALID_TIER = "INVALID_TIER"
    MISSING_FEATURES = "MISSING_FEATURES"

    INVALID_PLAN = "INVALID_PLAN"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TOKEN = "INVALID_TOKEN"

    SERVER_ERROR = "SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ValidationReason:
    """``reason`` values returned by ``POST /licenses/validate``."""

    INVALID_KEY = "INVALID_KEY"
    REVOKED = "REVOKED"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    DEVICE_MISMATCH = "DEVICE_MISMATCH"
    INSUFFICIENT_TIER = "INSUFFICIENT_TIER"
    MISSING_FEATURES = "MISSING_FEATURES"


class Endpoints:
    """Relative API paths used by the SDK modules."""

    LICENSES = "/licenses"
    VALIDATE = "/licenses/validate"
    PUBLIC_KEY = "/licenses/keys/public"
    HEALTH = "/health"
    HEALTH_DATABASE = "/health/database"

    @staticmethod
    def license_details(license_key: str) -> str:
        return f"/licenses/{license_key}"

    @staticmethod
    def license_revoke(license_key: str) -> str:
        return f"/licenses/{license_key}/revoke"


def license_cache_key(license_key: str) -> str:
    return f"license:{license_key}"


def validation_cache_key(license_key: str, device_id: str) -> str:
    return f"validation:{license_key}:{device_id}"
