"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/coalescing.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """Deduplicate identical in-flight requests."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[T]] = {}
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            existing = self._tasks.get(key)
            if existing is None:
                existing = asyncio.ensure_future(factory())
                self._tasks[key] = existing
                owner = True
            else:
                owner = False

        try:
            return await asyncio.shield(existing)
        finally:
            if owner:
                async with self._lock:
                    self._tasks.pop(key, None)
