from typing import Any, Dict, Optional, Tuple

from . import redis_cache
from .cache import cache as local_cache
from .redis_bus import publish

CACHE_TOPIC = "cache"

# pattern -> number of invalidations seen by this process
_generations: Dict[str, int] = {}


def _bump(pattern: str) -> None:
    _generations[pattern] = _generations.get(pattern, 0) + 1


async def generation(pattern: str) -> Optional[Tuple[int, int]]:
    """Snapshot of the invalidation counters for ``pattern``.

    A writer that saw one snapshot before computing a value must only cache
    it if the snapshot is unchanged afterwards. ``None`` means the shared
    counter could not be read and nothing should be cached.
    """
    remote = await redis_cache.generation(pattern)
    if remote is None:
        return None
    return _generations.get(pattern, 0), remote


async def handle_cache_event(topic: str, event: Any) -> None:
    """Consume cache bus events and apply local invalidations.
    Expected events on topic 'cache' with shape: { type: 'invalidate', pattern: '<prefix>' }
    """
    if not topic.endswith(CACHE_TOPIC) or not isinstance(event, dict):
        return
    et = str(event.get("type") or "").lower()
    if et == "invalidate":
        pat = str(event.get("pattern") or "")
        if pat:
            _bump(pat)
            await local_cache.delete_prefix(pat)


async def invalidate(pattern: str) -> None:
    """Drop matching keys from both cache tiers and tell peer processes to do the same."""
    _bump(pattern)
    await redis_cache.bump_generation(pattern)
    await local_cache.delete_prefix(pattern)
    await redis_cache.delete_prefix(pattern)
    await publish(CACHE_TOPIC, {"type": "invalidate", "pattern": pattern})
