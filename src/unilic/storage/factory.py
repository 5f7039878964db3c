"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting storage backends.
"""

from __future__ import annotations

import os
from typing import Any

from ..constants import DEFAULT_STORAGE_PREFIX
from .base import PrefixedStorage
from .file import FileStorage
from .memory import MemoryStorage
from .session import SessionStorage


def _env_first(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable in `names`."""
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def create_storage(
    kind: str = "memory",
    prefix: str = DEFAULT_STORAGE_PREFIX,
    *,
    directory: str | None = None,
    redis_client: Any | None = None,
    owns_client: bool = False,
) -> PrefixedStorage:
    """
    Build a storage adapter by backend name.

    Backends:
    - ``memory`` (default): private to the returned adapter.
    - ``session``: shared mapping for the interpreter session.
    - ``file`` / ``local``: persistent files under ``directory``.
    - ``redis``: requires ``redis_client``.
    """
    key = kind.strip().lower()
    if key in ("mem", "memory", "inmemory", "in_memory"):
        return MemoryStorage(prefix)
    if key == "session":
        return SessionStorage(prefix)
    if key in ("file", "local", "persistent"):
        return FileStorage(directory, prefix)
    if key == "redis":
        if redis_client is None:
            raise ValueError("Redis storage requires a redis client")
        from .redis import RedisStorage

        return RedisStorage(redis_client, prefix, owns_client=owns_client)
    raise ValueError(f"Unknown storage type: {kind}")


def create_storage_from_env(*, redis_client: Any | None = None) -> PrefixedStorage:
    """
    Create a storage adapter from ``UNILIC_STORAGE_*`` environment variables.

    Redis resolution uses the provided ``redis_client`` when supplied,
    otherwise builds one from ``UNILIC_REDIS_URL``.
    """
    backend = _env_first("UNILIC_STORAGE_BACKEND", default="memory") or "memory"
    prefix = (
        _env_first("UNILIC_STORAGE_PREFIX", default=DEFAULT_STORAGE_PREFIX)
        or DEFAULT_STORAGE_PREFIX
    )

    owns_client = False
    if backend.strip().lower() == "redis" and redis_client is None:
        try:
            import redis.asyncio as redis
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "Redis storage backend requires `redis` to be installed."
            ) from exc
        url = _env_first("UNILIC_REDIS_URL", default="redis://localhost:6379/0")
        redis_client = redis.Redis.from_url(url)
        owns_client = True

    return create_storage(
        backend,
        prefix,
        directory=_env_first("UNILIC_STORAGE_DIR"),
        redis_client=redis_client,
        owns_client=owns_client,
    )
