import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

from .config import get_settings
from .redis_bus import get_client

LOGGER = logging.getLogger("uvicorn.error")

_CACHE_NAMESPACE = "cache:"


def _redis_key(key: str) -> str:
    prefix = (get_settings().redis_prefix or "").strip()
    ns = _CACHE_NAMESPACE
    if prefix:
        ns = f"{prefix}:{_CACHE_NAMESPACE}"
    return f"{ns}{key}"


async def get(key: str) -> Optional[Any]:
    client = await get_client()
    if not client:
        return None
    try:
        raw = await client.get(_redis_key(key))
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis cache read failed for %s: %s", key, exc)
        return None
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except ValueError:
        return None


async def set(key: str, value: Any, ttl_seconds: int) -> None:
    client = await get_client()
    if not client:
        return
    ttl = int(ttl_seconds)
    if ttl <= 0:
        return
    payload = json.dumps(value, separators=(",", ":"))
    try:
        await client.set(_redis_key(key), payload, ex=ttl)
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis cache write failed for %s: %s", key, exc)


async def delete_prefix(prefix: str) -> int:
    client = await get_client()
    if not client:
        return 0
    pattern = _redis_key(prefix) + "*"
    deleted = 0
    try:
        async for name in client.scan_iter(match=pattern):
            deleted += await client.delete(name)
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis cache invalidation for %s failed: %s", prefix, exc)
    return deleted


def _generation_key(prefix: str) -> str:
    base = (get_settings().redis_prefix or "").strip()
    return f"{base}:gen:{prefix}" if base else f"gen:{prefix}"


async def generation(prefix: str) -> Optional[int]:
    """Invalidation counter for ``prefix``; ``None`` when Redis cannot be read."""
    client = await get_client()
    if not client:
        return 0
    try:
        raw = await client.get(_generation_key(prefix))
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis generation read for %s failed: %s", prefix, exc)
        return None
    try:
        return int(raw) if raw is not None else 0
    except (TypeError, ValueError):
        return 0


async def bump_generation(prefix: str) -> None:
    client = await get_client()
    if not client:
        return
    try:
        await client.incr(_generation_key(prefix))
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis generation bump for %s failed: %s", prefix, exc)
