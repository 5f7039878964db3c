"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Persistent file-backed storage.

Each key is one JSON file named by the URL-safe base64 of the prefixed key,
so foreign files in the same directory can be told apart on ``clear``.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import errno
import os
import tempfile
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from ..constants import DEFAULT_STORAGE_PREFIX
from .base import PrefixedStorage, StorageQuotaError

_SUFFIX = ".json"
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def default_storage_dir() -> Path:
    return Path(tempfile.gettempdir()) / "unilic-cache"


def _encode_name(full_key: str) -> str:
    raw = base64.urlsafe_b64encode(full_key.encode("utf-8")).decode("ascii")
    return raw.rstrip("=") + _SUFFIX


def _decode_name(name: str) -> str | None:
    if not name.endswith(_SUFFIX):
        return None
    stem = name[: -len(_SUFFIX)]
    padded = stem + "=" * (-len(stem) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


class FileStorage(PrefixedStorage):
    """
    Storage persisted under ``directory`` across process restarts.

    Args:
        directory: Target directory, created if missing. Defaults to
            ``<tempdir>/unilic-cache``.
        prefix: Key namespace prefix.
    """

    backend_id = "file"

    def __init__(
        self,
        directory: str | os.PathLike[str] | None = None,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(prefix, clock=clock)
        self._dir = Path(directory) if directory is not None else default_storage_dir()
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, full_key: str) -> Path:
        return self._dir / _encode_name(full_key)

    async def _read_raw(self, full_key: str) -> str | None:
        return await asyncio.to_thread(self._read_sync, self._path(full_key))

    async def _write_raw(self, full_key: str, blob: str, ttl_s: float | None) -> None:
        await asyncio.to_thread(self._write_sync, self._path(full_key), blob)

    async def _delete_raw(self, full_key: str) -> None:
        await asyncio.to_thread(self._path(full_key).unlink, missing_ok=True)

    async def _list_raw_keys(self) -> list[str]:
        return await asyncio.to_thread(self._list_sync)

    @staticmethod
    def _read_sync(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_sync(self, path: Path, blob: str) -> None:
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_text(blob, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(str(exc)) from exc
            raise

    def _list_sync(self) -> list[str]:
        keys: list[str] = []
        with os.scandir(self._dir) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                key = _decode_name(entry.name)
                if key is not None:
                    keys.append(key)
        return keys
