"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Client configuration and explicit environment loading.
"""

from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass, field

from .constants import (
    DEFAULT_CACHE_ENABLED,
    DEFAULT_CACHE_TTL_S,
    DEFAULT_RETRIES,
    DEFAULT_STORAGE_PREFIX,
    DEFAULT_TIMEOUT_S,
)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """
    Settings consumed by the transport, cache and client facade.

    Args:
        base_url: License server API root, e.g. ``https://license.example.com/api``.
        api_key: Admin bearer token sent as ``Authorization: Bearer ...``.
        app_key: Application key sent as ``X-ULS-App-Key``.
        app_code: Application code sent as ``X-ULS-App-Code``.
        timeout_s: Per-request timeout.
        retries: Maximum retry attempts after the first request.
        cache: Whether validation results and licenses are cached locally.
        cache_ttl_s: Freshness window for cached entries.
        debug: Emit request/response debug records on ``unilic.http``.
        headers: Extra headers added to every request.
        storage_prefix: Namespace prefix for every storage key.
        coalesce_validations: Share one in-flight request between concurrent
            identical validations.
    """

    base_url: str
    api_key: str | None = None
    app_key: str | None = None
    app_code: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    retries: int = DEFAULT_RETRIES
    cache: bool = DEFAULT_CACHE_ENABLED
    cache_ttl_s: float = DEFAULT_CACHE_TTL_S
    debug: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    storage_prefix: str = DEFAULT_STORAGE_PREFIX
    coalesce_validations: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ValueError("base_url is required in SDK configuration")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        parsed = urllib.parse.urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"base_url must be an absolute http(s) URL, got {self.base_url!r}"
            )
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.cache_ttl_s < 0:
            raise ValueError("cache_ttl_s must be >= 0")

    @staticmethod
    def from_env(**overrides) -> "ClientConfig":
        """Load configuration from ``UNILIC_*`` environment variables."""
        values = {
            "base_url": os.getenv("UNILIC_BASE_URL", ""),
            "api_key": os.getenv("UNILIC_API_KEY") or None,
            "app_key": os.getenv("UNILIC_APP_KEY") or None,
            "app_code": os.getenv("UNILIC_APP_CODE") or None,
            "timeout_s": float(os.getenv("UNILIC_TIMEOUT_S", str(DEFAULT_TIMEOUT_S))),
            "retries": int(os.getenv("UNILIC_RETRIES", str(DEFAULT_RETRIES))),
            "cache": _env_bool("UNILIC_CACHE", DEFAULT_CACHE_ENABLED),
            "cache_ttl_s": float(
                os.getenv("UNILIC_CACHE_TTL_S", str(DEFAULT_CACHE_TTL_S))
            ),
            "debug": _env_bool("UNILIC_DEBUG", False),
            "storage_prefix": os.getenv(
                "UNILIC_STORAGE_PREFIX", DEFAULT_STORAGE_PREFIX
            ),
        }
        values.update(overrides)
        return ClientConfig(**values)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY
