"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Checks that run without the license server.

These mirror the server's own tier and feature rules so an application can
gate functionality from a cached or signed license while offline.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from .constants import SECONDS_PER_DAY, TIER_HIERARCHY
from .models import as_utc, utcnow

LICENSE_KEY_PATTERN = re.compile(
    r"^[A-Z0-9]+-[A-Z]{3}-\d{4}-[A-F0-9]{4}-[A-F0-9]{4}-[A-F0-9]{4}$"
)
DEFAULT_GRACE_DAYS = 30


def _parse_when(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return as_utc(datetime.fromisoformat(text))


def tier_rank(tier: str | None) -> int:
    """Position in ``standard < pro < enterprise``; unknown tiers rank 0."""
    if not tier:
        return 0
    return TIER_HIERARCHY.get(tier.lower(), 0)


def meets_tier(current: str | None, required: str | None) -> bool:
    return tier_rank(current) >= tier_rank(required)


def missing_features(
    features: Mapping[str, bool] | None, required: Iterable[str]
) -> list[str]:
    """Required features not enabled on the license, in request order."""
    enabled = features or {}
    return [name for name in required if enabled.get(name) is not True]


def is_in_grace_period(
    expires_at: datetime | str,
    grace_days: int = DEFAULT_GRACE_DAYS,
    *,
    now: datetime | None = None,
) -> bool:
    """True once expired but no more than ``grace_days`` past expiry."""
    expiry = _parse_when(expires_at)
    current = now or utcnow()
    return expiry < current <= expiry + timedelta(days=grace_days)


def days_until_expiry(
    expires_at: datetime | str, *, now: datetime | None = None
) -> int:
    remaining_s = (_parse_when(expires_at) - (now or utcnow())).total_seconds()
    if remaining_s <= 0:
        return 0
    return math.ceil(remaining_s / SECONDS_PER_DAY)


def build_signed_payload(
    license_key: str,
    tier: str,
    device_id: str,
    expires_at: str,
) -> str:
    """
    Payload the server signs for a validation result.

    ``expires_at`` must be passed exactly as the server returned it; any
    re-formatting breaks verification.
    """
    return "|".join((license_key, tier, device_id, expires_at))


def is_valid_license_key(license_key: str) -> bool:
    """Format check for keys like ``ACME-ORG-2025-1A2B-3C4D-5E6F``."""
    return bool(LICENSE_KEY_PATTERN.match(license_key or ""))
