"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .coalescing import RequestCoalescer
from .license_cache import LicenseCache

__all__ = [
    "LicenseCache",
    "RequestCoalescer",
]
