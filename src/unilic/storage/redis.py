"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed storage for multi-process deployments.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any

from redis.exceptions import ResponseError

from ..constants import DEFAULT_STORAGE_PREFIX
from .base import PrefixedStorage, StorageQuotaError

_GLOB_SPECIAL = str.maketrans({c: f"\\{c}" for c in "*?[]\\"})


class RedisStorage(PrefixedStorage):
    """
    Storage on a shared Redis keyspace.

    Entries carry the usual envelope expiry and are also written with
    ``SETEX`` so Redis evicts them on its own.

    Args:
        redis: A ``redis.asyncio.Redis`` client instance.
        prefix: Key namespace prefix.
        owns_client: Close ``redis`` when this adapter is closed.
    """

    backend_id = "redis"

    def __init__(
        self,
        redis: Any,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        owns_client: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(prefix, clock=clock)
        self._redis = redis
        self._owns_client = owns_client

    async def close(self) -> None:
        if self._owns_client:
            await self._redis.aclose()

    async def _read_raw(self, full_key: str) -> str | bytes | None:
        return await self._redis.get(full_key)

    async def _write_raw(self, full_key: str, blob: str, ttl_s: float | None) -> None:
        try:
            if ttl_s:
                await self._redis.setex(full_key, max(1, math.ceil(ttl_s)), blob)
            else:
                await self._redis.set(full_key, blob)
        except ResponseError as exc:
            if "OOM" in str(exc):
                raise StorageQuotaError(str(exc)) from exc
            raise

    async def _delete_raw(self, full_key: str) -> None:
        await self._redis.delete(full_key)

    async def _list_raw_keys(self) -> list[str]:
        pattern = f"{self.prefix.translate(_GLOB_SPECIAL)}*"
        keys: list[str] = []
        async for key in self._redis.scan_iter(match=pattern):
            keys.append(key.decode("utf-8") if isinstance(key, bytes) else key)
        return keys
