"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: modules/__init__.py.
"""

from .health import HealthModule
from .licenses import LicenseModule
from .validation import ValidationModule

__all__ = ["HealthModule", "LicenseModule", "ValidationModule"]
