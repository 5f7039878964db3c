"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

License validation against ``POST /licenses/validate``.

Results are cache-first: a cached *valid* result whose embedded license has
not expired is returned without a request. Only valid results are written
back, so a rejection is never served from cache.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from ..cache import LicenseCache, RequestCoalescer
from ..constants import Endpoints
from ..crypto import KeySetVerification, SignatureVerifier
from ..fingerprint import DeviceFingerprint
from ..http import Transport
from ..models import (
    PublicKeySet,
    ValidationRequest,
    ValidationResponse,
    parse_response,
    utcnow,
)

logger = logging.getLogger("unilic.client")


class ValidationModule:
    """
    Validation operations.

    Args:
        http: Shared transport.
        cache: Optional license cache; ``None`` disables caching.
        coalesce: Share one request between concurrent identical validations.
        fingerprint: Device id source for the ``validate_*`` shortcuts.
        verifier: Signature verifier for ``verify_result``.
    """

    def __init__(
        self,
        http: Transport,
        cache: LicenseCache | None = None,
        *,
        coalesce: bool = False,
        fingerprint: DeviceFingerprint | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        self._http = http
        self._cache = cache
        self._coalescer: RequestCoalescer[ValidationResponse] | None = (
            RequestCoalescer() if coalesce else None
        )
        self._fingerprint = fingerprint or DeviceFingerprint()
        self._verifier = verifier

    async def validate(
        self, request: ValidationRequest | Mapping[str, Any]
    ) -> ValidationResponse:
        if not isinstance(request, ValidationRequest):
            request = ValidationRequest.model_validate(request)

        cached = await self._cached_result(request)
        if cached is not None:
            return cached

        if self._coalescer is None:
            return await self._fetch(request)
        key = json.dumps(request.to_payload(), sort_keys=True)
        return await self._coalescer.run(key, lambda: self._fetch(request))

    async def validate_simple(self, license_key: str) -> ValidationResponse:
        return await self.validate(
            ValidationRequest(
                license_key=license_key, device_id=self._fingerprint.generate()
            )
        )

    async def validate_features(
        self, license_key: str, required_features: list[str]
    ) -> ValidationResponse:
        return await self.validate(
            ValidationRequest(
                license_key=license_key,
                device_id=self._fingerprint.generate(),
                required_features=required_features,
            )
        )

    async def validate_tier(
        self, license_key: str, required_tier: str
    ) -> ValidationResponse:
        return await self.validate(
            ValidationRequest(
                license_key=license_key,
                device_id=self._fingerprint.generate(),
                required_tier=required_tier,
            )
        )

    async def is_valid_cached(self, license_key: str) -> bool:
        """Offline check of the cached license entry."""
        if self._cache is None:
            return False
        return await self._cache.is_valid(license_key)

    async def get_public_key(self) -> str | None:
        return (await self.get_public_key_set()).public_key

    async def get_public_key_set(self) -> PublicKeySet:
        data = await self._http.get(Endpoints.PUBLIC_KEY)
        return parse_response(PublicKeySet, data)

    def verify_result(
        self,
        result: ValidationResponse,
        key_set: PublicKeySet,
        data: str | bytes,
    ) -> KeySetVerification:
        """
        Verify a result's signature over ``data`` (the exact bytes the server
        signed), honouring ``signature_kid`` when present.
        """
        if not result.signature:
            return KeySetVerification(valid=False)
        if self._verifier is None:
            self._verifier = SignatureVerifier()
        return self._verifier.verify_with_key_set(
            data, result.signature, key_set, result.signature_kid
        )

    async def _cached_result(
        self, request: ValidationRequest
    ) -> ValidationResponse | None:
        if self._cache is None:
            return None
        cached = await self._cache.get_validation(
            request.license_key, request.device_id
        )
        if cached is None or not cached.valid:
            return None
        if cached.license is not None and cached.license.is_expired(utcnow()):
            return None
        logger.debug("Validation cache hit for %s", request.license_key)
        return cached

    async def _fetch(self, request: ValidationRequest) -> ValidationResponse:
        data = await self._http.post(Endpoints.VALIDATE, request.to_payload())
        result = parse_response(ValidationResponse, data)
        if self._cache is not None and result.valid:
            await self._cache.cache_validation(
                request.license_key, request.device_id, result
            )
        return result
