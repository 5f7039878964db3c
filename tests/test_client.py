from __future__ import annotations

import asyncio
import base64
import json
import threading

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from unilic import (
    ClientConfig,
    DeviceFingerprint,
    ErrorCode,
    LicenseClient,
    MemoryStorage,
    PublicKeySet,
    UnilicError,
)
from unilic.http import HttpRequest, HttpResponse

DEVICE_ID = "d" * 64


def run_async(coro):
    return asyncio.run(coro)


async def _no_sleep(_delay: float) -> None:
    return None


class _FixedFingerprint(DeviceFingerprint):
    def generate(self) -> str:
        return DEVICE_ID


class _Server:
    """Route table keyed by ``(method, path)``; records every request."""

    def __init__(self, routes: dict[tuple[str, str], object]) -> None:
        self.routes = routes
        self.requests: list[HttpRequest] = []
        self._lock = threading.Lock()

    def __call__(self, request: HttpRequest) -> HttpResponse:
        with self._lock:
            self.requests.append(request)
        path = request.url.split("/api", 1)[1].split("?", 1)[0]
        status, body = self.routes[(request.method, path)]
        return HttpResponse(status=status, body=json.dumps(body).encode("utf-8"))

    def count(self, method: str, path: str) -> int:
        return sum(
            1
            for r in self.requests
            if r.method == method and r.url.endswith(f"/api{path}")
        )


class _ClosableStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _client(server: _Server, storage=None, **overrides) -> LicenseClient:
    values = {"base_url": "https://lic.test/api", "retries": 0}
    values.update(overrides)
    return LicenseClient(
        ClientConfig(**values),
        storage=storage,
        sender=server,
        sleep=_no_sleep,
        fingerprint=_FixedFingerprint(),
    )


def _valid_response(license_key: str = "K", expires_at: str = "2099-01-01T00:00:00Z"):
    return {
        "valid": True,
        "license": {
            "licenseKey": license_key,
            "tier": "pro",
            "features": {"reports": True},
            "expiresAt": expires_at,
            "maxUsers": 10,
        },
    }


def test_rejected_validation_is_not_cached():
    async def scenario() -> None:
        key = "ABC-ORG-2025-1111-2222-3333"
        server = _Server(
            {
                ("POST", "/licenses/validate"): (
                    200,
                    {"valid": False, "reason": "EXPIRED", "error": "License has expired"},
                )
            }
        )
        storage = MemoryStorage()
        client = _client(server, storage)

        result = await client.validate({"license_key": key, "device_id": "dev"})
        assert result.valid is False
        assert result.reason == "EXPIRED"
        assert storage.size() == 0
        assert await client.get_cached_license(key) is None

        await client.validate({"license_key": key, "device_id": "dev"})
        assert server.count("POST", "/licenses/validate") == 2

    run_async(scenario())


def test_validate_sends_camel_case_payload_and_caches_valid_results():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        client = _client(server)

        first = await client.validate(
            {
                "license_key": "K",
                "device_id": "dev",
                "required_tier": "pro",
                "required_features": ["reports"],
            }
        )
        assert first.valid is True
        assert json.loads(server.requests[0].body) == {
            "licenseKey": "K",
            "deviceId": "dev",
            "requiredTier": "pro",
            "requiredFeatures": ["reports"],
        }

        second = await client.validate({"license_key": "K", "device_id": "dev"})
        assert second.valid is True
        assert second.license is not None
        assert second.license.tier == "pro"
        assert server.count("POST", "/licenses/validate") == 1

        assert await client.is_license_valid("K") is True
        cached = await client.get_cached_license("K")
        assert cached is not None
        assert cached.status == "active"
        assert server.count("POST", "/licenses/validate") == 1

    run_async(scenario())


def test_cached_validation_with_expired_license_is_refetched():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        client = _client(server)
        await client.cache.cache_validation(
            "K", "dev", _valid_response(expires_at="2020-01-01T00:00:00Z")
        )

        result = await client.validate({"license_key": "K", "device_id": "dev"})
        assert result.valid is True
        assert server.count("POST", "/licenses/validate") == 1

    run_async(scenario())


def test_is_license_valid_falls_back_to_network_and_swallows_errors():
    async def scenario() -> None:
        server = _Server(
            {("POST", "/licenses/validate"): (200, {"valid": True})}
        )
        client = _client(server)
        assert await client.is_license_valid("K") is True
        assert json.loads(server.requests[0].body)["deviceId"] == DEVICE_ID

        server.routes[("POST", "/licenses/validate")] = (404, {"error": "Unknown key"})
        assert await client.is_license_valid("OTHER") is False

    run_async(scenario())


def test_cache_disabled_always_hits_network():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        client = _client(server, cache=False)
        assert client.cache is None

        for _ in range(2):
            await client.validate({"license_key": "K", "device_id": "dev"})
        assert server.count("POST", "/licenses/validate") == 2
        assert await client.get_cached_license("K") is None

    run_async(scenario())


def test_concurrent_validations_share_one_request_when_coalescing():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        client = _client(server, cache=False, coalesce_validations=True)
        request = {"license_key": "K", "device_id": "dev"}

        results = await asyncio.gather(*(client.validate(request) for _ in range(3)))
        assert all(r.valid for r in results)
        assert server.count("POST", "/licenses/validate") == 1

    run_async(scenario())


def test_concurrent_validations_without_coalescing_each_send():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        client = _client(server, cache=False)
        request = {"license_key": "K", "device_id": "dev"}

        await asyncio.gather(*(client.validate(request) for _ in range(3)))
        assert server.count("POST", "/licenses/validate") == 3

    run_async(scenario())


def test_license_lookups_are_cache_first():
    async def scenario() -> None:
        server = _Server(
            {
                ("GET", "/licenses/K"): (
                    200,
                    {
                        "license": {
                            "license_key": "K",
                            "tier": "pro",
                            "status": "active",
                            "features": {"reports": True},
                            "expires_at": "2099-01-01T00:00:00Z",
                        }
                    },
                ),
                ("POST", "/licenses/K/revoke"): (200, {"success": True}),
            }
        )
        client = _client(server)

        assert await client.has_feature("K", "reports") is True
        assert await client.has_feature("K", "sso") is False
        assert await client.has_tier("K", "standard") is True
        assert await client.has_tier("K", "enterprise") is False
        assert await client.get_days_until_expiry("K") > 0
        assert await client.licenses.is_valid("K") is True
        assert server.count("GET", "/licenses/K") == 1

        result = await client.licenses.revoke("K", "chargeback")
        assert result == {"success": True}
        assert json.loads(server.requests[-1].body) == {"reason": "chargeback"}
        assert await client.get_cached_license("K") is None

    run_async(scenario())


def test_license_get_without_license_payload_raises():
    async def scenario() -> None:
        server = _Server({("GET", "/licenses/K"): (200, {"message": "nothing"})})
        client = _client(server)
        with pytest.raises(UnilicError) as exc_info:
            await client.licenses.get("K")
        assert exc_info.value.code == ErrorCode.INVALID_LICENSE
        assert await client.licenses.is_valid("K") is False

    run_async(scenario())


def test_malformed_validation_payload_is_a_server_error():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, ["unexpected"])})
        client = _client(server)
        with pytest.raises(UnilicError) as exc_info:
            await client.validate({"license_key": "K", "device_id": "dev"})
        assert exc_info.value.is_network
        assert exc_info.value.code == ErrorCode.SERVER_ERROR

    run_async(scenario())


def test_runtime_configuration_updates():
    async def scenario() -> None:
        server = _Server({("GET", "/health"): (200, {"status": "ok", "version": "2.0.0"})})
        client = _client(server)

        client.set_token("tok")
        check = await client.test_connection()
        assert check.healthy is True
        assert server.requests[-1].headers["Authorization"] == "Bearer tok"

        health = await client.health.get_health()
        assert health.version == "2.0.0"

        client.set_config(timeout_s=5.0, cache=False)
        assert client.config.timeout_s == 5.0
        assert client.cache is None
        with pytest.raises(ValueError):
            client.set_config(retries=-1)

    run_async(scenario())


def test_clear_cache_and_context_manager_close_storage():
    async def scenario() -> None:
        server = _Server({("POST", "/licenses/validate"): (200, _valid_response())})
        storage = _ClosableStorage()
        async with _client(server, storage) as client:
            await client.validate({"license_key": "K", "device_id": "dev"})
            assert storage.size() == 2
            await client.clear_cache()
            assert storage.size() == 0
        assert storage.closed is True

    run_async(scenario())


def test_create_storage_static_helper():
    storage = LicenseClient.create_storage("memory", "app_")
    assert isinstance(storage, MemoryStorage)
    assert storage.prefix == "app_"


def test_public_key_set_and_result_verification():
    async def scenario() -> None:
        private = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        pem = (
            private.public_key()
            .public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode("ascii")
        )
        data = "K|pro|dev|2099-01-01T00:00:00Z"
        signature = base64.b64encode(
            private.sign(data.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        ).decode("ascii")

        server = _Server(
            {
                ("GET", "/licenses/keys/public"): (
                    200,
                    {"publicKey": pem, "kid": "k2", "keys": [{"kid": "k2", "publicKey": pem}]},
                ),
                ("POST", "/licenses/validate"): (
                    200,
                    {**_valid_response(), "signature": signature, "signatureKid": "k2"},
                ),
            }
        )
        client = _client(server)

        key_set = await client.validation.get_public_key_set()
        assert isinstance(key_set, PublicKeySet)
        assert await client.validation.get_public_key() == pem

        result = await client.validate({"license_key": "K", "device_id": "dev"})
        outcome = client.validation.verify_result(result, key_set, data)
        assert outcome.valid is True
        assert outcome.kid == "k2"
        assert client.validation.verify_result(result, key_set, data + "x").valid is False

    run_async(scenario())


def test_is_license_valid_is_false_when_the_request_cannot_be_built():
    async def scenario() -> None:
        def rejecting_sender(request: HttpRequest) -> HttpResponse:
            raise ValueError(f"unknown url type: {request.url!r}")

        client = LicenseClient(
            ClientConfig(base_url="https://lic.test/api", retries=2),
            sender=rejecting_sender,
            sleep=_no_sleep,
            fingerprint=_FixedFingerprint(),
        )
        assert await client.is_license_valid("K") is False

    run_async(scenario())
