"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: modules/licenses.py.
"""

from __future__ import annotations

from typing import Any

from ..cache import LicenseCache
from ..constants import Endpoints, ErrorCode
from ..errors import UnilicError, license_error
from ..http import Transport
from ..models import License, parse_response, utcnow
from ..offline import days_until_expiry, meets_tier


class LicenseModule:
    """License lookups and admin actions that keep the cache coherent."""

    def __init__(self, http: Transport, cache: LicenseCache | None = None) -> None:
        self._http = http
        self._cache = cache

    async def get(self, license_key: str) -> License:
        """Cached license when present, else ``GET /licenses/{key}``."""
        if self._cache is not None:
            cached = await self._cache.get(license_key)
            if cached is not None:
                return cached

        data = await self._http.get(Endpoints.license_details(license_key))
        raw = data.get("license") if isinstance(data, dict) else None
        if raw is None:
            raise license_error(
                f"License {license_key} not found",
                ErrorCode.INVALID_LICENSE,
                details=data if isinstance(data, dict) else None,
            )
        license = parse_response(License, raw)
        if self._cache is not None:
            await self._cache.set(license_key, license)
        return license

    async def get_cached(self, license_key: str) -> License | None:
        if self._cache is None:
            return None
        return await self._cache.get(license_key)

    async def revoke(self, license_key: str, reason: str) -> Any:
        result = await self._http.post(
            Endpoints.license_revoke(license_key), {"reason": reason}
        )
        if self._cache is not None:
            await self._cache.remove(license_key)
        return result

    async def delete(self, license_key: str) -> None:
        await self._http.delete(Endpoints.license_details(license_key))
        if self._cache is not None:
            await self._cache.remove(license_key)

    async def has_feature(self, license_key: str, feature: str) -> bool:
        return (await self.get(license_key)).has_feature(feature)

    async def has_tier(self, license_key: str, required_tier: str) -> bool:
        return meets_tier((await self.get(license_key)).tier, required_tier)

    async def get_days_until_expiry(self, license_key: str) -> int:
        if self._cache is not None:
            days = await self._cache.get_days_until_expiry(license_key)
            if days is not None:
                return days

        license = await self.get(license_key)
        if license.expires_at is None:
            return 0
        return days_until_expiry(license.expires_at)

    async def is_valid(self, license_key: str) -> bool:
        try:
            license = await self.get(license_key)
        except UnilicError:
            return False
        return license.is_currently_valid(utcnow())
