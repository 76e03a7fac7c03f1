from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from vibematch import redis_bus
from vibematch.cache import cache as local_cache
from vibematch.config import get_settings
from vibematch.db import close_mongo_connection, connect_to_mongo, get_db
from vibematch.main import app
from vibematch.models.profile import Profile
from vibematch.repositories.exceptions import StoreUnavailableError
from vibematch.repositories.profile import ProfileRepository
from vibematch.services.profile_service import get_profile_store

_PROTECTED = ("userId", "tenantId", "createdAt", "updatedAt")


class InMemoryProfileStore:
    """``ProfileStore`` double for engine and service unit tests.

    It narrows by tag overlap (unless ``narrow`` is off) but, unlike the Mongo
    repository, leaves deactivated profiles in the population so the engine's
    own checks are exercised. Query behaviour against Mongo is covered through
    ``mongomock_motor`` in the repository and API tests.
    """

    def __init__(self, docs: Iterable[Dict[str, Any]] = (), *, narrow: bool = True) -> None:
        self.docs: Dict[str, Dict[str, Any]] = {doc["userId"]: dict(doc) for doc in docs}
        self.narrow = narrow
        self.fail = False
        self.find_calls: List[Dict[str, Any]] = []

    def add(self, **doc: Any) -> None:
        self.docs[doc["userId"]] = doc

    async def find_profiles_by_any_tag(
        self,
        tags: Iterable[str],
        *,
        timeout: Optional[float] = None,
    ) -> List[Profile]:
        wanted = set(tags)
        self.find_calls.append({"tags": sorted(wanted), "timeout": timeout})
        if self.fail:
            raise StoreUnavailableError("profile store offline")
        return [
            Profile.model_validate(doc)
            for doc in self.docs.values()
            if not self.narrow or wanted & set(doc.get("tags") or [])
        ]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        if self.fail:
            raise StoreUnavailableError("profile store offline")
        doc = self.docs.get(user_id)
        return Profile.model_validate(doc) if doc else None

    async def save_profile(self, user_id: str, fields: Mapping[str, Any]) -> Profile:
        if self.fail:
            raise StoreUnavailableError("profile store offline")
        doc = self.docs.setdefault(user_id, {"userId": user_id, "createdAt": 1})
        doc.update({key: value for key, value in fields.items() if key not in _PROTECTED})
        doc["updatedAt"] = doc.get("updatedAt", 1) + 1
        return Profile.model_validate(doc)


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "vibematch-test")
    monkeypatch.setenv("VIBEMATCH_TENANT_ID", "test-tenant")
    monkeypatch.setenv("MATCH_CACHE_TTL_SECONDS", "30")
    monkeypatch.setenv("REDIS_PREFIX", "vm")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("MATCH_INCLUDE_UNLOCATED", raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest_asyncio.fixture
async def clean_cache() -> AsyncIterator[None]:
    await local_cache.clear()
    yield
    await local_cache.clear()


@pytest_asyncio.fixture
async def fake_redis() -> AsyncIterator[FakeRedis]:
    client = FakeRedis()
    redis_bus.set_client(client)
    try:
        yield client
    finally:
        await client.flushall()
        redis_bus.set_client(None)


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("vibematch.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient, clean_cache: None) -> AsyncIterator[AsyncClient]:
    await connect_to_mongo()
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        await close_mongo_connection()


@pytest.fixture
def profiles(api_client: AsyncClient) -> ProfileRepository:
    """Repository over the same mock database the API is serving."""
    return ProfileRepository(get_db(), tenant_id="test-tenant")


@pytest.fixture
def store_outage() -> Iterator[InMemoryProfileStore]:
    failing = InMemoryProfileStore()
    failing.fail = True
    app.dependency_overrides[get_profile_store] = lambda: failing
    try:
        yield failing
    finally:
        app.dependency_overrides.pop(get_profile_store, None)
