"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: storage/memory.py.
"""

from __future__ import annotations

import time
from collections.abc import Callable, MutableMapping

from ..constants import DEFAULT_STORAGE_PREFIX
from .base import PrefixedStorage, StorageQuotaError


class MappingStorage(PrefixedStorage):
    """Storage over a plain mutable mapping of encoded envelopes."""

    backend_id = "mapping"

    def __init__(
        self,
        store: MutableMapping[str, str],
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(prefix, clock=clock)
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._store = store
        self._max_entries = max_entries

    async def _read_raw(self, full_key: str) -> str | None:
        return self._store.get(full_key)

    async def _write_raw(self, full_key: str, blob: str, ttl_s: float | None) -> None:
        if (
            self._max_entries is not None
            and full_key not in self._store
            and self.size() >= self._max_entries
        ):
            raise StorageQuotaError(
                f"{self.backend_id} storage limit of {self._max_entries} entries reached"
            )
        self._store[full_key] = blob

    async def _delete_raw(self, full_key: str) -> None:
        self._store.pop(full_key, None)

    async def _list_raw_keys(self) -> list[str]:
        return list(self._store.keys())

    def size(self) -> int:
        """Number of entries under this adapter's prefix, expired ones included."""
        return sum(1 for key in self._store if key.startswith(self.prefix))


class MemoryStorage(MappingStorage):
    """Process-local storage owned by one adapter; lost when the process exits."""

    backend_id = "memory"

    def __init__(
        self,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__({}, prefix, max_entries=max_entries, clock=clock)
