"""MongoDB adapter implementing the profile store contract."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..db.collections import PROFILES_COLLECTION
from ..models.profile import Profile, normalize_location
from ..utils.geo import build_geojson_point
from .exceptions import RepositoryError, StoreUnavailableError

LOGGER = logging.getLogger("uvicorn.error")

_PROJECTION = {"_id": 0, "tenantId": 0}
_PROTECTED_FIELDS = ("_id", "tenantId", "userId", "createdAt", "updatedAt")


def document_to_profile(doc: Optional[Mapping[str, Any]]) -> Optional[Profile]:
    """Validate a stored document, returning ``None`` for unusable records."""

    if not doc:
        return None
    try:
        return Profile.model_validate(dict(doc))
    except ValidationError as exc:
        LOGGER.warning(
            "Skipping malformed profile document userId=%r: %s",
            doc.get("userId"),
            exc.errors(include_url=False),
        )
        return None


def _storage_location(raw: Any) -> Optional[Dict[str, Any]]:
    point = normalize_location(raw)
    if point is None:
        return None
    return {
        "lat": point["lat"],
        "lon": point["lon"],
        "coordinates": build_geojson_point(point["lat"], point["lon"]),
    }


class ProfileRepository:
    """Tenant-scoped access to profile documents."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        *,
        tenant_id: str,
        timeout_ms: int = 5000,
    ) -> None:
        if not tenant_id:
            raise ValueError("tenant_id required")
        self._database = database
        self._collection: AsyncIOMotorCollection = database[PROFILES_COLLECTION]
        self._tenant_id = tenant_id
        self._timeout_ms = max(0, int(timeout_ms))

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    def _scoped(self, query: Dict[str, Any]) -> Dict[str, Any]:
        return {"tenantId": self._tenant_id, **query}

    async def find_profiles_by_any_tag(
        self,
        tags: Iterable[str],
        *,
        timeout: Optional[float] = None,
    ) -> List[Profile]:
        tag_list = list(dict.fromkeys(tag for tag in tags if tag))
        if not tag_list:
            return []

        seconds = timeout if timeout is not None else self._timeout_ms / 1000.0
        query = self._scoped({"tags": {"$in": tag_list}, "isDeactivated": {"$ne": True}})
        cursor = self._collection.find(query, projection=_PROJECTION)
        if seconds > 0:
            cursor.max_time_ms(max(1, int(seconds * 1000)))

        try:
            if seconds > 0:
                docs = await asyncio.wait_for(cursor.to_list(length=None), timeout=seconds)
            else:
                docs = await cursor.to_list(length=None)
        except asyncio.TimeoutError as exc:
            raise StoreUnavailableError("profile store timed out") from exc
        except PyMongoError as exc:
            raise StoreUnavailableError(f"profile store query failed: {exc}") from exc

        profiles: List[Profile] = []
        for doc in docs:
            profile = document_to_profile(doc)
            if profile is not None:
                profiles.append(profile)
        LOGGER.debug(
            "Loaded %s candidate profiles for tags=%s (raw=%s)",
            len(profiles),
            tag_list,
            len(docs),
        )
        return profiles

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            doc = await self._collection.find_one(
                self._scoped({"userId": user_id}),
                projection=_PROJECTION,
            )
        except PyMongoError as exc:
            raise StoreUnavailableError(f"profile lookup failed: {exc}") from exc
        return document_to_profile(doc)

    async def save_profile(self, user_id: str, fields: Mapping[str, Any]) -> Profile:
        """Merge ``fields`` into the profile; fields not given are preserved."""

        updates = {key: value for key, value in fields.items() if key not in _PROTECTED_FIELDS}
        if "location" in updates:
            updates["location"] = _storage_location(updates["location"])

        now_ms = int(time.time() * 1000)
        try:
            doc = await self._collection.find_one_and_update(
                self._scoped({"userId": user_id}),
                {
                    "$set": {**updates, "updatedAt": now_ms},
                    "$setOnInsert": {"createdAt": now_ms},
                },
                upsert=True,
                projection=_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreUnavailableError(f"profile save failed: {exc}") from exc

        profile = document_to_profile(doc)
        if profile is None:
            raise RepositoryError("profile save produced an unreadable document")
        return profile


__all__ = ["ProfileRepository", "document_to_profile"]
