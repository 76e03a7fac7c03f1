from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends

from ..cache_bus import invalidate
from ..config import get_settings
from ..db import get_db
from ..models.filters import MatchFilters
from ..models.profile import Profile, ProfileUpdate
from ..repositories.base import ProfileStore
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.profile import ProfileRepository

LOGGER = logging.getLogger("uvicorn.error")


def match_cache_prefix(tenant_id: str) -> str:
    return f"matches:{tenant_id}:"


class ProfileService:
    """Profile reads and merge-saves; every write invalidates cached matches."""

    def __init__(self, store: ProfileStore, *, tenant_id: str) -> None:
        self._store = store
        self._tenant_id = tenant_id

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        if not user_id:
            return None
        return await self._store.get_profile(user_id)

    async def save_profile(self, user_id: str, payload: ProfileUpdate) -> Profile:
        fields = payload.model_dump(by_alias=True, exclude_unset=True)
        profile = await self._store.save_profile(user_id, fields)
        await self._invalidate_matches()
        return profile

    async def get_match_filters(self, user_id: str) -> MatchFilters:
        profile = await self.get_profile(user_id)
        if profile is None:
            raise NotFoundRepositoryError("profile not found")
        return MatchFilters.from_saved(profile.match_filters)

    async def save_match_filters(self, user_id: str, filters: MatchFilters) -> MatchFilters:
        profile = await self.get_profile(user_id)
        if profile is None:
            raise NotFoundRepositoryError("profile not found")
        saved = await self._store.save_profile(
            user_id,
            {"matchFilters": filters.model_dump(by_alias=True)},
        )
        await self._invalidate_matches()
        return MatchFilters.from_saved(saved.match_filters)

    async def _invalidate_matches(self) -> None:
        # a single profile write can change anyone's results
        prefix = match_cache_prefix(self._tenant_id)
        await invalidate(prefix)
        LOGGER.debug("Invalidated match cache prefix=%s", prefix)


def get_profile_store() -> ProfileStore:
    settings = get_settings()
    return ProfileRepository(
        get_db(),
        tenant_id=settings.tenant_id,
        timeout_ms=settings.store_timeout_ms,
    )


def get_profile_service(store: ProfileStore = Depends(get_profile_store)) -> ProfileService:
    return ProfileService(store, tenant_id=get_settings().tenant_id)


__all__ = [
    "ProfileService",
    "get_profile_service",
    "get_profile_store",
    "match_cache_prefix",
]
