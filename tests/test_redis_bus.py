from __future__ import annotations

import asyncio
import json

import pytest
from fakeredis.aioredis import FakeRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from vibematch import redis_bus
from vibematch.cache import cache as local_cache
from vibematch.cache_bus import handle_cache_event
from vibematch.config import get_settings


async def _eventually(check, attempts: int = 100) -> bool:
    for _ in range(attempts):
        if await check():
            return True
        await asyncio.sleep(0.01)
    return False


@pytest.mark.asyncio
async def test_listener_survives_malformed_events(clean_cache) -> None:
    client = FakeRedis()
    redis_bus.set_client(client)
    seen = []

    async def handler(topic, event):
        seen.append(event)
        if event.get("type") == "explode":
            raise RuntimeError("handler bug")
        await handle_cache_event(topic, event)

    try:
        await redis_bus.start_consumer(handler)

        async def subscribed() -> bool:
            await redis_bus.publish("cache", {"type": "hello"})
            return bool(seen)

        assert await _eventually(subscribed)

        await local_cache.set("matches:test-tenant:abc", {"status": "ok"}, 30)
        await client.publish("vm.cache", json.dumps(["oops"]))
        await client.publish("vm.cache", json.dumps("just a string"))
        await redis_bus.publish("cache", {"type": "explode"})
        await redis_bus.publish("cache", {"type": "invalidate", "pattern": "matches:test-tenant:"})

        async def invalidated() -> bool:
            return await local_cache.get("matches:test-tenant:abc") is None

        assert await _eventually(invalidated)
        assert all(isinstance(event, dict) for event in seen)

        await redis_bus.stop()
    finally:
        redis_bus.set_client(None)


@pytest.mark.asyncio
async def test_handle_cache_event_ignores_non_object_payloads(clean_cache) -> None:
    await local_cache.set("matches:test-tenant:abc", {"status": "ok"}, 30)

    await handle_cache_event("vm.cache", ["oops"])
    await handle_cache_event("vm.cache", "invalidate")

    assert await local_cache.get("matches:test-tenant:abc") is not None


class _DownRedis:
    def __init__(self) -> None:
        self.closed = False

    async def ping(self) -> None:
        raise RedisConnectionError("connection refused")

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_failed_ping_closes_client_and_backs_off(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://cache.invalid:6379/0")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    created = []

    def _client_factory(*_args, **_kwargs) -> _DownRedis:
        client = _DownRedis()
        created.append(client)
        return client

    monkeypatch.setattr(redis_bus.Redis, "from_url", _client_factory)
    redis_bus.set_client(None)
    try:
        assert await redis_bus.get_client() is None
        assert len(created) == 1
        assert created[0].closed

        # within the backoff window no new connection is attempted
        assert await redis_bus.get_client() is None
        await redis_bus.publish("cache", {"type": "invalidate", "pattern": "x"})
        assert len(created) == 1

        redis_bus.set_client(None)
        assert await redis_bus.get_client() is None
        assert len(created) == 2
    finally:
        redis_bus.set_client(None)
