"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Public SDK entry point.

``LicenseClient`` wires one transport, one storage adapter and one license
cache into the validation, license and health modules::

    async with LicenseClient(ClientConfig(base_url="https://lic.example.com/api")) as client:
        result = await client.validate(
            {"license_key": "ACME-ORG-2025-1A2B-3C4D-5E6F", "device_id": device_id}
        )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .cache import LicenseCache
from .config import ClientConfig
from .constants import DEFAULT_STORAGE_PREFIX
from .errors import UnilicError
from .fingerprint import DeviceFingerprint
from .http import ConnectionCheck, RetryConfig, Sender, Transport
from .models import License, ValidationRequest, ValidationResponse, utcnow
from .modules import HealthModule, LicenseModule, ValidationModule
from .storage import MemoryStorage, StorageAdapter, create_storage

logger = logging.getLogger("unilic.client")

_CACHE_FIELDS = frozenset({"cache", "cache_ttl_s", "coalesce_validations"})


class LicenseClient:
    """
    License server client.

    Args:
        config: Client configuration.
        storage: Cache storage; defaults to a private ``MemoryStorage``
            under ``config.storage_prefix``.
        sender: Blocking HTTP sender override (tests, custom transports).
        sleep: Awaitable sleep used between retries.
        retry_config: Retry rules; ``max_retries`` follows ``config.retries``.
        fingerprint: Device id source for the ``validate_*`` shortcuts.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        storage: StorageAdapter | None = None,
        sender: Sender | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        retry_config: RetryConfig | None = None,
        fingerprint: DeviceFingerprint | None = None,
    ) -> None:
        self._http = Transport(
            config, sender=sender, retry_config=retry_config, sleep=sleep
        )
        self._storage = (
            storage if storage is not None else MemoryStorage(config.storage_prefix)
        )
        self._fingerprint = fingerprint or DeviceFingerprint()
        self._build_modules()
        if config.debug:
            logger.debug(
                "LicenseClient ready base_url=%s cache=%s",
                config.base_url,
                config.cache,
            )

    def _build_modules(self) -> None:
        config = self._http.config
        self.cache: LicenseCache | None = (
            LicenseCache(self._storage, config.cache_ttl_s) if config.cache else None
        )
        self.validation = ValidationModule(
            self._http,
            self.cache,
            coalesce=config.coalesce_validations,
            fingerprint=self._fingerprint,
        )
        self.licenses = LicenseModule(self._http, self.cache)
        self.health = HealthModule(self._http)

    @property
    def config(self) -> ClientConfig:
        return self._http.config

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    async def validate(
        self, request: ValidationRequest | Mapping[str, Any]
    ) -> ValidationResponse:
        return await self.validation.validate(request)

    async def is_license_valid(self, license_key: str) -> bool:
        """Cached license state when known, otherwise a network validation."""
        if self.cache is not None:
            cached = await self.cache.get(license_key)
            if cached is not None:
                return cached.is_currently_valid(utcnow())

        try:
            result = await self.validation.validate_simple(license_key)
        except UnilicError as exc:
            logger.debug("Validation failed for %s: %s", license_key, exc)
            return False
        return result.valid

    async def get_cached_license(self, license_key: str) -> License | None:
        return await self.licenses.get_cached(license_key)

    async def has_feature(self, license_key: str, feature: str) -> bool:
        return await self.licenses.has_feature(license_key, feature)

    async def has_tier(self, license_key: str, required_tier: str) -> bool:
        return await self.licenses.has_tier(license_key, required_tier)

    async def get_days_until_expiry(self, license_key: str) -> int:
        return await self.licenses.get_days_until_expiry(license_key)

    def set_config(self, **changes: Any) -> None:
        """
        Update configuration at runtime, e.g. ``set_config(api_key=token)``.

        Raises:
            ValueError: The resulting configuration is invalid.
        """
        self._http.update_config(**changes)
        if _CACHE_FIELDS.intersection(changes):
            self._build_modules()

    def set_token(self, token: str | None) -> None:
        self._http.set_api_key(token)

    async def clear_cache(self) -> None:
        if self.cache is not None:
            await self.cache.clear()

    async def test_connection(self) -> ConnectionCheck:
        return await self._http.test_connection()

    @staticmethod
    def create_storage(
        kind: str = "memory", prefix: str = DEFAULT_STORAGE_PREFIX, **kwargs: Any
    ) -> StorageAdapter:
        return create_storage(kind, prefix, **kwargs)

    async def aclose(self) -> None:
        close = getattr(self._storage, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "LicenseClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
