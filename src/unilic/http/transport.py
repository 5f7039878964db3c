"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

HTTP transport for license server calls.

Every verb runs through ``RetryExecutor`` and converts failures into
``UnilicError`` before they leave this module.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..config import ClientConfig
from ..constants import Endpoints, ErrorCode
from ..errors import (
    UnilicError,
    license_error,
    network_error,
    purchase_error,
    validation_error,
)
from .forms import FormFile, encode_multipart
from .retry import RetryConfig, RetryExecutor, connection_code

logger = logging.getLogger("unilic.http")

_JSON = "application/json"


@dataclass(frozen=True, slots=True)
class HttpRequest:
    """Fully composed outbound request."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout_s: float = 30.0


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Raw response as returned by a sender."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    """Outcome of ``Transport.test_connection``."""

    healthy: bool
    latency_ms: float
    version: str | None = None


Sender = Callable[[HttpRequest], HttpResponse]


def urllib_send(request: HttpRequest) -> HttpResponse:
    """Blocking sender backed by ``urllib.request``; run off the event loop."""
    req = urllib.request.Request(
        request.url,
        data=request.body,
        method=request.method,
        headers=request.headers,
    )
    try:
        with urllib.request.urlopen(req, timeout=request.timeout_s) as resp:  # noqa: S310
            return HttpResponse(
                status=resp.status,
                body=resp.read(),
                headers=dict(resp.headers.items()),
            )
    except urllib.error.HTTPError as e:
        try:
            body = e.read()
        except OSError:
            body = b""
        return HttpResponse(
            status=e.code,
            body=body or b"",
            headers=dict(e.headers.items()) if e.headers else {},
        )
    except urllib.error.URLError as e:
        if isinstance(e.reason, OSError):
            raise e.reason from e
        raise


def _decode_body(raw: bytes) -> Any:
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        for key in ("error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return "Request failed"


def classify_response(status: int, data: Any) -> UnilicError:
    """Map a non-2xx response onto the error taxonomy."""
    message = _error_message(data)
    details = data if isinstance(data, dict) else None

    if status == 401:
        return validation_error(
            message, ErrorCode.UNAUTHORIZED, status_code=status, details=details
        )
    if status == 403:
        return validation_error(
            message, ErrorCode.FORBIDDEN, status_code=status, details=details
        )
    if status == 404:
        return license_error(
            message, ErrorCode.INVALID_LICENSE, status_code=status, details=details
        )
    if status == 409:
        return purchase_error(
            message, ErrorCode.INVALID_PLAN, status_code=status, details=details
        )
    if status == 429:
        return network_error(
            "Rate limit exceeded. Please try again later.",
            ErrorCode.TIMEOUT,
            status_code=status,
            details=details,
        )
    if status >= 500:
        return network_error(
            message, ErrorCode.SERVER_ERROR, status_code=status, details=details
        )
    return license_error(
        message, ErrorCode.NETWORK_ERROR, status_code=status, details=details
    )


def classify_failure(error: BaseException, *, timeout_s: float) -> UnilicError:
    """Map a no-response failure onto a network error."""
    code = connection_code(error)
    if code == "ETIMEDOUT":
        return network_error(
            f"Request timed out after {timeout_s:g}s",
            ErrorCode.TIMEOUT,
            cause_code=code,
        )
    return network_error(
        "No response from server. Please check your connection.",
        ErrorCode.CONNECTION_REFUSED,
        cause_code=code,
    )


class Transport:
    """
    Single point of HTTP I/O for every SDK module.

    Args:
        config: Client configuration (base URL, credentials, timeout, retries).
        sender: Blocking callable performing one HTTP exchange. Defaults to
            ``urllib_send``.
        retry_config: Retry rules; ``max_retries`` follows ``config.retries``.
        sleep: Awaitable sleep used between retry attempts.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        sender: Sender | None = None,
        retry_config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._sender = sender or urllib_send
        self._sleep = sleep
        base_retry = retry_config or RetryConfig()
        self._retry = RetryExecutor(
            base_retry.with_max_retries(config.retries), sleep=sleep
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry.config

    @property
    def api_key(self) -> str | None:
        return self._config.api_key

    def set_api_key(self, api_key: str | None) -> None:
        self._config = replace(self._config, api_key=api_key or None)

    def update_config(self, **changes: Any) -> None:
        """Apply configuration changes; ``retries`` rebuilds the retry budget."""
        self._config = replace(self._config, **changes)
        if "retries" in changes:
            self._retry = RetryExecutor(
                self._retry.config.with_max_retries(self._config.retries),
                sleep=self._sleep,
            )

    def build_headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": _JSON, "Accept": _JSON}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        if self._config.app_key:
            headers["X-ULS-App-Key"] = self._config.app_key
        if self._config.app_code:
            headers["X-ULS-App-Code"] = self._config.app_code
        headers.update(self._config.headers)
        if extra:
            headers.update(extra)
        return headers

    def build_url(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        url = f"{self._config.base_url}/{path.lstrip('/')}"
        if params:
            query = urllib.parse.urlencode(
                {k: v for k, v in params.items() if v is not None}, doseq=True
            )
            if query:
                url = f"{url}?{query}"
        return url

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self, path: str, data: Any = None, *, headers: Mapping[str, str] | None = None
    ) -> Any:
        return await self._request("POST", path, data=data, headers=headers)

    async def put(
        self, path: str, data: Any = None, *, headers: Mapping[str, str] | None = None
    ) -> Any:
        return await self._request("PUT", path, data=data, headers=headers)

    async def patch(
        self, path: str, data: Any = None, *, headers: Mapping[str, str] | None = None
    ) -> Any:
        return await self._request("PATCH", path, data=data, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("DELETE", path, params=params, headers=headers)

    async def post_form(
        self,
        path: str,
        fields: Mapping[str, str | int | float] | None = None,
        files: Mapping[str, FormFile] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """POST a multipart/form-data body (file imports)."""
        body, content_type = encode_multipart(fields, files)
        merged = dict(headers or {})
        merged["Content-Type"] = content_type
        return await self._request(
            "POST", path, raw_body=body, headers=merged, label="POST FORM"
        )

    async def test_connection(self) -> ConnectionCheck:
        """Call ``GET /health`` and report reachability and latency."""
        started = time.monotonic()
        try:
            data = await self.get(Endpoints.HEALTH)
        except UnilicError:
            return ConnectionCheck(
                healthy=False, latency_ms=(time.monotonic() - started) * 1000.0
            )
        latency_ms = (time.monotonic() - started) * 1000.0
        if not isinstance(data, dict):
            return ConnectionCheck(healthy=False, latency_ms=latency_ms)
        version = data.get("version")
        return ConnectionCheck(
            healthy=data.get("status") == "ok",
            latency_ms=latency_ms,
            version=version if isinstance(version, str) else None,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: Any = None,
        raw_body: bytes | None = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        label: str | None = None,
    ) -> Any:
        body = raw_body
        if body is None and data is not None:
            body = json.dumps(data).encode("utf-8")
        request = HttpRequest(
            method=method,
            url=self.build_url(path, params),
            headers=self.build_headers(headers),
            body=body,
            timeout_s=self._config.timeout_s,
        )
        log_body: Any = data if raw_body is None else f"<{len(raw_body)} bytes>"
        verb = label or method

        async def attempt() -> Any:
            return await self._send_once(request, log_body)

        def on_retry(error: BaseException, attempt_number: int) -> None:
            if self._config.debug:
                logger.debug(
                    "Retrying %s %s (attempt %d): %s",
                    verb,
                    path,
                    attempt_number,
                    error,
                )

        return await self._retry.execute(attempt, on_retry)

    async def _send_once(self, request: HttpRequest, log_body: Any) -> Any:
        debug = self._config.debug
        if debug:
            logger.debug(
                "Request %s %s body=%s", request.method, request.url, log_body
            )
        started = time.monotonic()
        try:
            response = await asyncio.to_thread(self._sender, request)
        except (OSError, http.client.HTTPException) as exc:
            error = classify_failure(exc, timeout_s=request.timeout_s)
            if debug:
                logger.debug(
                    "Request error %s %s: %s (%s)",
                    request.method,
                    request.url,
                    exc,
                    error.cause_code,
                )
            raise error from exc
        except ValueError as exc:
            if debug:
                logger.debug(
                    "Request rejected %s %s: %s", request.method, request.url, exc
                )
            raise network_error(
                f"Invalid request: {exc}", ErrorCode.NETWORK_ERROR
            ) from exc

        data = _decode_body(response.body)
        if debug:
            logger.debug(
                "Response %s %s status=%d elapsed_ms=%.1f body=%s",
                request.method,
                request.url,
                response.status,
                (time.monotonic() - started) * 1000.0,
                data,
            )
        if 200 <= response.status < 300:
            return data
        raise classify_response(response.status, data)
