"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Storage adapter contract and the shared envelope/expiry/prefix logic.

Concrete backends only implement raw string reads and writes. Expiry checks,
prefix scoping and the quota retry all live here so that every backend
behaves the same.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..constants import DEFAULT_STORAGE_PREFIX

logger = logging.getLogger("unilic.storage")


class StorageQuotaError(RuntimeError):
    """Raised by a backend when it is out of capacity."""


@dataclass(frozen=True, slots=True)
class StorageEntry:
    """Envelope persisted for every stored value."""

    value: Any
    expires_at_s: float | None = None

    def is_expired(self, now_s: float) -> bool:
        return self.expires_at_s is not None and self.expires_at_s < now_s

    def encode(self) -> str:
        row: dict[str, Any] = {"value": self.value}
        if self.expires_at_s is not None:
            row["expires_at"] = self.expires_at_s
        return json.dumps(row, ensure_ascii=True)

    @classmethod
    def decode(cls, blob: str | bytes) -> "StorageEntry":
        """Parse one envelope; raises ``ValueError`` when malformed."""
        if isinstance(blob, bytes):
            blob = blob.decode("utf-8")
        row = json.loads(blob)
        if not isinstance(row, dict) or "value" not in row:
            raise ValueError("Storage envelope is missing 'value'")
        expires_at = row.get("expires_at")
        if expires_at is not None and not isinstance(expires_at, (int, float)):
            raise ValueError("Storage envelope has a non-numeric 'expires_at'")
        return cls(value=row["value"], expires_at_s=expires_at)


@runtime_checkable
class StorageAdapter(Protocol):
    """Key/value store with per-entry TTL used by ``LicenseCache``."""

    prefix: str

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_s: float | None = None) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def has(self, key: str) -> bool: ...

    async def clear(self) -> None: ...


class PrefixedStorage(ABC):
    """
    Base class for storage backends sharing a namespace with foreign code.

    Args:
        prefix: Prepended to every key; ``clear`` only touches keys under it.
        clock: Wall clock in epoch seconds.
    """

    backend_id: str = "abstract"

    def __init__(
        self,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.prefix = prefix
        self._clock = clock

    @abstractmethod
    async def _read_raw(self, full_key: str) -> str | bytes | None:
        raise NotImplementedError

    @abstractmethod
    async def _write_raw(self, full_key: str, blob: str, ttl_s: float | None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def _delete_raw(self, full_key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def _list_raw_keys(self) -> list[str]:
        """All keys visible in the underlying store, foreign ones included."""
        raise NotImplementedError

    def full_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Any | None:
        entry = await self._load(self.full_key(key))
        return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl_s: float | None = None) -> None:
        full_key = self.full_key(key)
        expires_at = self._clock() + ttl_s if ttl_s else None
        blob = StorageEntry(value=value, expires_at_s=expires_at).encode()
        try:
            await self._write_raw(full_key, blob, ttl_s or None)
            return
        except StorageQuotaError:
            logger.warning(
                "%s storage full writing %s; purging expired entries",
                self.backend_id,
                full_key,
            )
        await self.purge_expired()
        try:
            await self._write_raw(full_key, blob, ttl_s or None)
        except StorageQuotaError:
            logger.warning(
                "%s storage still full; dropping %s",
                self.backend_id,
                full_key,
                exc_info=True,
            )

    async def remove(self, key: str) -> None:
        await self._delete_raw(self.full_key(key))

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> None:
        for full_key in await self._own_keys():
            await self._delete_raw(full_key)

    async def purge_expired(self) -> int:
        """Delete expired or corrupted entries under this prefix."""
        removed = 0
        now = self._clock()
        for full_key in await self._own_keys():
            blob = await self._read_raw(full_key)
            if blob is None:
                continue
            try:
                entry = StorageEntry.decode(blob)
            except ValueError:
                await self._delete_raw(full_key)
                removed += 1
                continue
            if entry.is_expired(now):
                await self._delete_raw(full_key)
                removed += 1
        return removed

    async def close(self) -> None:
        """Release backend resources owned by this adapter."""
        return None

    async def _own_keys(self) -> list[str]:
        return [k for k in await self._list_raw_keys() if k.startswith(self.prefix)]

    async def _load(self, full_key: str) -> StorageEntry | None:
        blob = await self._read_raw(full_key)
        if blob is None:
            return None
        try:
            entry = StorageEntry.decode(blob)
        except ValueError:
            logger.warning("Dropping corrupted storage entry %s", full_key)
            await self._delete_raw(full_key)
            return None
        if entry.is_expired(self._clock()):
            await self._delete_raw(full_key)
            return None
        return entry
