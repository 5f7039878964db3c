"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: modules/health.py.
"""

from __future__ import annotations

from typing import Any

from ..constants import Endpoints
from ..http import Transport
from ..models import HealthStatus, parse_response


class HealthModule:
    def __init__(self, http: Transport) -> None:
        self._http = http

    async def get_health(self) -> HealthStatus:
        return parse_response(HealthStatus, await self._http.get(Endpoints.HEALTH))

    async def get_database_health(self) -> dict[str, Any]:
        data = await self._http.get(Endpoints.HEALTH_DATABASE)
        return data if isinstance(data, dict) else {}
