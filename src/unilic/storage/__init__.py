"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Storage adapters backing the license cache.

All adapters share one envelope format and one expiry check, and scope
every operation to their key prefix::

    from unilic.storage import MemoryStorage

    storage = MemoryStorage("uls_")
    await storage.set("license:ABC", {"status": "active"}, ttl_s=60)
"""

from .base import PrefixedStorage, StorageAdapter, StorageEntry, StorageQuotaError
from .factory import create_storage, create_storage_from_env
from .file import FileStorage, default_storage_dir
from .memory import MappingStorage, MemoryStorage
from .redis import RedisStorage
from .session import SessionStorage, session_store

__all__ = [
    "PrefixedStorage",
    "StorageAdapter",
    "StorageEntry",
    "StorageQuotaError",
    "create_storage",
    "create_storage_from_env",
    "FileStorage",
    "default_storage_dir",
    "MappingStorage",
    "MemoryStorage",
    "RedisStorage",
    "SessionStorage",
    "session_store",
]
