import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import get_settings

LOGGER = logging.getLogger("uvicorn.error")

_client: Optional[Redis] = None
_listener_task: Optional[asyncio.Task] = None
# no reconnect attempts before this monotonic time after a failed ping
_retry_after: float = 0.0

RETRY_BACKOFF_SECONDS = 5.0

EventHandler = Callable[[str, Dict[str, Any]], Awaitable[None]]


def channel(topic: str) -> str:
    prefix = (get_settings().redis_prefix or "").strip()
    return f"{prefix}.{topic}" if prefix else topic


async def _ensure_client() -> Optional[Redis]:
    global _client, _retry_after
    if _client is not None:
        return _client
    url = get_settings().redis_url
    if not url or time.monotonic() < _retry_after:
        return None
    client = Redis.from_url(url, encoding="utf-8", decode_responses=False)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis unavailable, retrying in %ss: %s", RETRY_BACKOFF_SECONDS, exc)
        _retry_after = time.monotonic() + RETRY_BACKOFF_SECONDS
        await client.aclose()
        return None
    _client = client
    return _client


async def get_client() -> Optional[Redis]:
    """Return the shared Redis client, if configured."""
    return await _ensure_client()


def set_client(client: Optional[Redis]) -> None:
    """Swap the shared client (used to plug in fakeredis under test)."""
    global _client, _retry_after
    _client = client
    _retry_after = 0.0


async def publish(topic: str, event: Dict[str, Any]) -> None:
    client = await _ensure_client()
    if not client:
        return
    try:
        payload = json.dumps(event, separators=(",", ":")).encode("utf-8")
        await client.publish(channel(topic), payload)
    except (RedisError, OSError) as exc:
        LOGGER.warning("Redis publish to %s failed: %s", topic, exc)


async def start_consumer(handler: EventHandler, topics: tuple = ("cache",)) -> None:
    global _listener_task
    if _listener_task is not None:
        return
    client = await _ensure_client()
    if not client:
        return

    async def _run() -> None:
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(*[channel(name) for name in topics])
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                raw_channel = message.get("channel")
                raw_data = message.get("data")
                try:
                    name = raw_channel.decode("utf-8") if isinstance(raw_channel, (bytes, bytearray)) else str(raw_channel)
                    if isinstance(raw_data, (bytes, bytearray)):
                        raw_data = raw_data.decode("utf-8")
                    payload = json.loads(raw_data)
                except (UnicodeDecodeError, ValueError):
                    LOGGER.debug("Ignoring undecodable bus message on %r", raw_channel)
                    continue
                if not isinstance(payload, dict):
                    LOGGER.debug("Ignoring non-object bus message on %s", name)
                    continue
                try:
                    await handler(name, payload)
                except Exception:
                    # one bad event must not stop peer invalidations
                    LOGGER.exception("Cache bus handler failed on %s", name)
        except (RedisError, OSError) as exc:
            LOGGER.warning("Redis listener stopped: %s", exc)
        finally:
            await pubsub.aclose()

    _listener_task = asyncio.create_task(_run())
    LOGGER.info("Redis cache bus listener started")


async def stop() -> None:
    global _listener_task, _client
    if _listener_task is not None:
        _listener_task.cancel()
        try:
            await _listener_task
        except asyncio.CancelledError:
            pass
        except (RedisError, OSError) as exc:
            LOGGER.warning("Redis listener ended with error: %s", exc)
        _listener_task = None
    if _client is not None:
        await _client.aclose()
        _client = None
