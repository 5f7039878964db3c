from __future__ import annotations

import os
import uuid

import pytest

from unilic.storage import RedisStorage


def _redis_url() -> str | None:
    return os.getenv("UNILIC_TEST_REDIS_URL")


@pytest.mark.skipif(_redis_url() is None, reason="UNILIC_TEST_REDIS_URL is not set")
@pytest.mark.asyncio
async def test_redis_storage_round_trip_with_real_redis():
    redis = pytest.importorskip("redis.asyncio")
    client = redis.Redis.from_url(_redis_url())
    prefix = f"itest:uls:{uuid.uuid4().hex}:"
    foreign = f"itest:foreign:{uuid.uuid4().hex}"
    storage = RedisStorage(client, prefix, owns_client=True)

    await client.set(foreign, "keep")
    await storage.set("license:A", {"tier": "pro"}, ttl_s=30)
    assert await storage.get("license:A") == {"tier": "pro"}
    assert 0 < await client.ttl(f"{prefix}license:A") <= 30

    await storage.clear()
    assert await storage.get("license:A") is None
    assert await client.get(foreign) == b"keep"

    await client.delete(foreign)
    await storage.close()
