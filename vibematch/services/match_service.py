"""Caller-side matching: requester resolution, saved preferences, caching, ordering."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Iterable, List, Optional

from fastapi import Depends
from pydantic import ValidationError

from .. import cache_bus, redis_cache
from ..cache import cache as local_cache
from ..config import get_settings
from ..models.filters import MatchFilters
from ..models.match import MatchOutcome, MatchResult, Requester, SortMode
from ..models.profile import VIBE_LOOKUP, GeoPoint
from ..repositories.base import ProfileStore
from ..repositories.exceptions import NotFoundRepositoryError, StoreUnavailableError
from ..utils.coerce import canonical_option_list
from .match_engine import MatchEngine
from .profile_service import get_profile_store, match_cache_prefix

LOGGER = logging.getLogger("uvicorn.error")


def sort_matches(matches: List[MatchResult], sort: SortMode) -> List[MatchResult]:
    if sort == "distance":
        # unknown distances go last, store order is kept among ties
        return sorted(
            matches,
            key=lambda item: (item.distance_km is None, item.distance_km or 0.0),
        )
    if sort == "name":
        return sorted(matches, key=lambda item: (item.name.lower(), item.user_id))
    return list(matches)


class MatchService:
    def __init__(
        self,
        store: ProfileStore,
        *,
        tenant_id: str,
        engine: Optional[MatchEngine] = None,
        cache_ttl_seconds: int = 30,
        timeout: Optional[float] = None,
        include_unlocated: bool = True,
    ) -> None:
        self._store = store
        self._engine = engine or MatchEngine(store, include_unlocated=include_unlocated)
        self._tenant_id = tenant_id
        self._cache_ttl = max(0, int(cache_ttl_seconds))
        self._timeout = timeout

    async def find_matches_for_user(
        self,
        user_id: str,
        *,
        tags: Optional[Iterable[str]] = None,
        filters: Optional[MatchFilters] = None,
        location: Optional[GeoPoint] = None,
        sort: SortMode = "none",
    ) -> MatchOutcome:
        """Match for a stored user, defaulting to their tags and saved filters.

        Raises ``NotFoundRepositoryError`` when the requester has no profile.
        """
        try:
            profile = await self._store.get_profile(user_id)
        except StoreUnavailableError as exc:
            LOGGER.warning("Requester lookup for userId=%s failed: %s", user_id, exc)
            return MatchOutcome(status="unavailable", error=str(exc))
        if profile is None:
            raise NotFoundRepositoryError("profile not found")

        requester = Requester.from_profile(profile, location)
        requester_tags = profile.tags if tags is None else list(tags)
        effective = filters if filters is not None else MatchFilters.from_saved(profile.match_filters)
        return await self.match(requester, requester_tags, effective, sort=sort)

    async def match(
        self,
        requester: Requester,
        tags: Iterable[str],
        filters: MatchFilters,
        *,
        sort: SortMode = "none",
    ) -> MatchOutcome:
        tag_list = list(tags)
        key = self.cache_key(requester, tag_list, filters)
        outcome = await self._cached(key)
        if outcome is None:
            prefix = match_cache_prefix(self._tenant_id)
            # a profile write while the engine runs makes this result stale
            before = await cache_bus.generation(prefix) if self._cache_ttl else None
            outcome = await self._engine.find_matches(
                requester,
                tag_list,
                filters,
                timeout=self._timeout,
            )
            if outcome.status == "ok" and before is not None:
                if await cache_bus.generation(prefix) == before:
                    await self._store_cached(key, outcome)
                else:
                    LOGGER.debug("Skipping cache store for key=%s, invalidated mid-flight", key)
        if sort == "none":
            return outcome
        return outcome.model_copy(update={"matches": sort_matches(outcome.matches, sort)})

    def cache_key(self, requester: Requester, tags: List[str], filters: MatchFilters) -> str:
        location = requester.location
        raw = {
            "u": requester.user_id,
            "t": sorted(canonical_option_list(tags, VIBE_LOOKUP)),
            "l": [location.lat, location.lon] if location else None,
            "f": filters.model_dump(by_alias=True),
        }
        digest = hashlib.sha1(
            json.dumps(raw, separators=(",", ":"), sort_keys=True).encode("utf-8")
        ).hexdigest()
        return f"{match_cache_prefix(self._tenant_id)}{digest}"

    async def _cached(self, key: str) -> Optional[MatchOutcome]:
        if not self._cache_ttl:
            return None
        raw: Any = await local_cache.get(key)
        if raw is None:
            raw = await redis_cache.get(key)
            if raw is not None:
                await local_cache.set(key, raw, self._cache_ttl)
        if raw is None:
            return None
        try:
            return MatchOutcome.model_validate(raw)
        except ValidationError:
            LOGGER.warning("Discarding unreadable cached match outcome key=%s", key)
            return None

    async def _store_cached(self, key: str, outcome: MatchOutcome) -> None:
        if not self._cache_ttl:
            return
        payload = outcome.model_dump(by_alias=True, mode="json")
        await local_cache.set(key, payload, self._cache_ttl)
        await redis_cache.set(key, payload, self._cache_ttl)


def get_match_service(store: ProfileStore = Depends(get_profile_store)) -> MatchService:
    settings = get_settings()
    return MatchService(
        store,
        tenant_id=settings.tenant_id,
        cache_ttl_seconds=settings.match_cache_ttl_seconds,
        timeout=settings.store_timeout_seconds or None,
        include_unlocated=settings.match_include_unlocated,
    )


__all__ = ["MatchService", "get_match_service", "sort_matches"]
