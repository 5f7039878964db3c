"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Wire models for license server payloads.

The server uses snake_case for license entities and camelCase for the
validation envelope; models accept both spellings and always dump
licenses in snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import ErrorCode
from .errors import network_error


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class License(BaseModel):
    """Cached license entity."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    license_key: str = Field(
        validation_alias=AliasChoices("license_key", "licenseKey")
    )
    tier: str | None = None
    status: str | None = None
    features: dict[str, bool] = Field(default_factory=dict)
    expires_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("expires_at", "expiresAt"),
    )
    max_users: int | None = Field(
        default=None,
        validation_alias=AliasChoices("max_users", "maxUsers"),
    )
    org_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("org_name", "orgName"),
    )
    product_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("product_code", "productCode"),
    )

    @field_validator("expires_at")
    @classmethod
    def _normalize_expiry(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())

    def is_currently_valid(self, now: datetime | None = None) -> bool:
        """Active status and an expiry strictly in the future."""
        if self.status != "active" or self.expires_at is None:
            return False
        return self.expires_at > (now or utcnow())

    def has_feature(self, feature: str) -> bool:
        return self.features.get(feature) is True

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ValidationRequest(_CamelModel):
    """Body of ``POST /licenses/validate``."""

    license_key: str
    device_id: str
    required_tier: str | None = None
    required_features: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ValidationResponse(_CamelModel):
    """Result of ``POST /licenses/validate``."""

    valid: bool
    license: License | None = None
    signature: str | None = None
    signature_kid: str | None = None
    owner_claimed: bool | None = None
    error: str | None = None
    reason: str | None = None
    current_tier: str | None = None
    required_tier: str | None = None
    missing_features: list[str] | None = None

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class KeySetEntry(_CamelModel):
    """One signing key published by the server."""

    kid: str | None = None
    public_key: str
    status: str | None = None
    created_at: str | None = None


class PublicKeySet(_CamelModel):
    """
    ``GET /licenses/keys/public`` payload.

    Accepts the legacy ``{publicKey}`` shape and the rotation-aware
    ``{publicKey, kid, keys: [...]}`` shape.
    """

    public_key: str | None = None
    kid: str | None = None
    keys: list[KeySetEntry] = Field(default_factory=list)

    def entries(self) -> list[KeySetEntry]:
        """Keys in server order, falling back to the single active key."""
        if self.keys:
            return list(self.keys)
        if self.public_key:
            return [KeySetEntry(kid=self.kid, public_key=self.public_key)]
        return []


class HealthStatus(_CamelModel):
    """``GET /health`` payload."""

    status: str
    version: str | None = None
    timestamp: str | None = None
    environment: str | None = None


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_response(model: type[ModelT], data: Any) -> ModelT:
    """Validate a server payload, surfacing schema drift as a server error."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise network_error(
            f"Malformed {model.__name__} payload from server",
            ErrorCode.SERVER_ERROR,
            details=data if isinstance(data, dict) else None,
        ) from exc
