"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: fingerprint.py.
"""

from __future__ import annotations

import json
import os
import platform
import re
import socket
from typing import Any

from .crypto.provider import CryptoProvider, default_crypto_provider

_DEVICE_ID = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)


def _total_memory() -> int | None:
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return None


class DeviceFingerprint:
    """
    Stable per-machine identifier used as ``device_id`` during validation.

    The identifier is the SHA-256 of host attributes, so it changes when the
    hostname or hardware changes.
    """

    def __init__(self, provider: CryptoProvider | None = None) -> None:
        self._provider = provider or default_crypto_provider()

    @staticmethod
    def device_info() -> dict[str, Any]:
        return {
            "platform": platform.system().lower(),
            "arch": platform.machine(),
            "hostname": socket.gethostname(),
            "cpus": os.cpu_count() or 0,
            "python_version": platform.python_version(),
            "total_memory": _total_memory(),
        }

    def generate(self) -> str:
        """64-char hex device id."""
        blob = json.dumps(self.device_info(), sort_keys=True, separators=(",", ":"))
        return self._provider.digest(blob.encode("utf-8"))

    @staticmethod
    def is_valid_device_id(device_id: str) -> bool:
        return bool(_DEVICE_ID.match(device_id or ""))


def generate_device_id() -> str:
    return DeviceFingerprint().generate()
