"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Session-scoped storage.

Entries live in a mapping shared by every ``SessionStorage`` of the
interpreter session unless a host-provided mapping is injected. Foreign code
may write to the same mapping, so prefix scoping is the only isolation.
"""

from __future__ import annotations

import time
from collections.abc import Callable, MutableMapping

from ..constants import DEFAULT_STORAGE_PREFIX
from .memory import MappingStorage

_SESSION_STORE: dict[str, str] = {}


def session_store() -> MutableMapping[str, str]:
    """The default mapping backing ``SessionStorage``."""
    return _SESSION_STORE


class SessionStorage(MappingStorage):
    backend_id = "session"

    def __init__(
        self,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        store: MutableMapping[str, str] | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            _SESSION_STORE if store is None else store,
            prefix,
            max_entries=max_entries,
            clock=clock,
        )
