"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Domain-aware license cache.

Two expirations apply to every cached license: the storage TTL bounds how
stale a fetch may be, and the license's own ``expires_at`` bounds validity.
The latter is re-derived from the clock on every read, so a license that
expired out-of-band disappears even while its TTL window is still open.
Cache failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..constants import (
    DEFAULT_CACHE_TTL_S,
    SECONDS_PER_DAY,
    license_cache_key,
    validation_cache_key,
)
from ..models import License, ValidationResponse, utcnow
from ..storage.base import StorageAdapter

logger = logging.getLogger("unilic.cache")


class LicenseCache:
    """
    License and validation-result cache over one storage adapter.

    Args:
        storage: Adapter owned by this cache.
        ttl_s: Freshness window applied to every write.
        now: Clock used for license expiry checks.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        ttl_s: float = DEFAULT_CACHE_TTL_S,
        *,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.storage = storage
        self._ttl_s = ttl_s
        self._now = now

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    async def get(self, license_key: str) -> License | None:
        """Cached license, or ``None`` when missing or past ``expires_at``."""
        try:
            license = await self._read_license(license_key)
            if license is None:
                return None
            if license.is_expired(self._now()):
                await self.storage.remove(license_cache_key(license_key))
                return None
            return license
        except Exception:  # noqa: BLE001
            logger.warning("License cache get failed for %s", license_key, exc_info=True)
            return None

    async def set(self, license_key: str, license: License | dict[str, Any]) -> None:
        try:
            if not isinstance(license, License):
                license = License.model_validate(license)
            await self.storage.set(
                license_cache_key(license_key), license.to_storage(), self._ttl_s
            )
        except Exception:  # noqa: BLE001
            logger.warning("License cache set failed for %s", license_key, exc_info=True)

    async def remove(self, license_key: str) -> None:
        try:
            await self.storage.remove(license_cache_key(license_key))
        except Exception:  # noqa: BLE001
            logger.warning(
                "License cache remove failed for %s", license_key, exc_info=True
            )

    async def clear(self) -> None:
        try:
            await self.storage.clear()
        except Exception:  # noqa: BLE001
            logger.warning("License cache clear failed", exc_info=True)

    async def has(self, license_key: str) -> bool:
        return await self.get(license_key) is not None

    async def cache_validation(
        self,
        license_key: str,
        device_id: str,
        result: ValidationResponse | dict[str, Any],
    ) -> None:
        """
        Store a validation result under ``(license_key, device_id)``.

        A valid result also upserts the plain license entry; a license
        embedded without a status is stored as ``active``.
        """
        try:
            if not isinstance(result, ValidationResponse):
                result = ValidationResponse.model_validate(result)
            await self.storage.set(
                validation_cache_key(license_key, device_id),
                result.to_storage(),
                self._ttl_s,
            )
        except Exception:  # noqa: BLE001
            logger.warning(
                "Validation cache write failed for %s", license_key, exc_info=True
            )
            return

        if result.valid and result.license is not None:
            license = result.license
            if license.status is None:
                license = license.model_copy(update={"status": "active"})
            await self.set(license_key, license)

    async def get_validation(
        self, license_key: str, device_id: str
    ) -> ValidationResponse | None:
        try:
            raw = await self.storage.get(validation_cache_key(license_key, device_id))
            if raw is None:
                return None
            return ValidationResponse.model_validate(raw)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Validation cache read failed for %s", license_key, exc_info=True
            )
            return None

    async def get_days_until_expiry(self, license_key: str) -> int | None:
        """
        Whole days left on the cached license, rounded up.

        Returns ``0`` for a cached license already past expiry (and evicts it)
        and ``None`` when nothing is cached.
        """
        try:
            license = await self._read_license(license_key)
        except Exception:  # noqa: BLE001
            logger.warning(
                "License cache read failed for %s", license_key, exc_info=True
            )
            return None
        if license is None or license.expires_at is None:
            return None

        remaining_s = (license.expires_at - self._now()).total_seconds()
        if remaining_s <= 0:
            await self.remove(license_key)
            return 0
        return math.ceil(remaining_s / SECONDS_PER_DAY)

    async def is_valid(self, license_key: str) -> bool:
        license = await self.get(license_key)
        if license is None:
            return False
        return license.is_currently_valid(self._now())

    async def _read_license(self, license_key: str) -> License | None:
        raw = await self.storage.get(license_cache_key(license_key))
        if raw is None:
            return None
        return License.model_validate(raw)
