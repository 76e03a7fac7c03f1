from __future__ import annotations

import pytest
import pytest_asyncio

from vibematch.db import get_db
from vibematch.repositories.profile import ProfileRepository


@pytest_asyncio.fixture
async def seeded(profiles):
    await profiles.save_profile(
        "me",
        {
            "name": "Me",
            "tags": ["Chill", "Creative"],
            "age": 30,
            "location": {"lat": 40.0, "lon": -73.0},
            "matchFilters": {"minAge": 18, "maxAge": 40, "maxDistanceKm": 50},
        },
    )
    await profiles.save_profile("a", {"name": "Ana", "tags": ["Chill"], "age": 30, "location": {"lat": 40.3, "lon": -73.1}})
    await profiles.save_profile("b", {"name": "Bo", "tags": ["Energetic"], "age": 30})
    await profiles.save_profile("c", {"name": "Cy", "tags": ["Creative"], "age": 45})
    await profiles.save_profile("d", {"name": "Di", "tags": ["Chill"], "age": 22, "isDeactivated": True})
    await profiles.save_profile("e", {"name": "Ed", "tags": ["Creative"], "age": 33})
    # same tags, other tenant
    other = ProfileRepository(get_db(), tenant_id="other-tenant")
    await other.save_profile("x", {"name": "Xi", "tags": ["Chill"], "age": 30})
    return profiles


@pytest.mark.asyncio
async def test_get_matches_uses_saved_preferences(api_client, seeded) -> None:
    res = await api_client.get("/api/users/me/matches")

    assert res.status_code == 200
    body = res.json()
    assert body["userId"] == "me"
    assert body["status"] == "ok"
    assert body["count"] == 2
    ids = [m["userId"] for m in body["matches"]]
    assert ids == ["a", "e"]
    ana = body["matches"][0]
    assert 30 < ana["distanceKm"] < 40
    assert ana["imageUrl"].startswith("data:image/svg+xml,")


@pytest.mark.asyncio
async def test_get_matches_sorted_by_name(api_client, seeded) -> None:
    res = await api_client.get("/api/users/me/matches", params={"sort": "name"})

    assert [m["name"] for m in res.json()["matches"]] == ["Ana", "Ed"]


@pytest.mark.asyncio
async def test_unknown_sort_mode_is_422(api_client, seeded) -> None:
    res = await api_client.get("/api/users/me/matches", params={"sort": "random"})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_post_matches_with_overrides(api_client, seeded) -> None:
    res = await api_client.post(
        "/api/users/me/matches",
        json={
            "tags": ["creative"],
            "filters": {"minAge": 40, "maxAge": 50},
            "sort": "distance",
        },
    )

    assert res.status_code == 200
    assert [m["userId"] for m in res.json()["matches"]] == ["c"]


@pytest.mark.asyncio
async def test_post_without_body_behaves_like_get(api_client, seeded) -> None:
    res = await api_client.post("/api/users/me/matches")

    assert res.status_code == 200
    assert [m["userId"] for m in res.json()["matches"]] == ["a", "e"]


@pytest.mark.asyncio
async def test_requester_without_tags_gets_no_tags_status(api_client, profiles) -> None:
    await profiles.save_profile("me", {"name": "Me", "tags": []})
    await profiles.save_profile("a", {"name": "Ana", "tags": ["Chill"], "age": 30})

    res = await api_client.get("/api/users/me/matches")

    assert res.status_code == 200
    assert res.json()["status"] == "no_tags"
    assert res.json()["matches"] == []


@pytest.mark.asyncio
async def test_post_rejects_inverted_age_range(api_client, seeded) -> None:
    res = await api_client.post(
        "/api/users/me/matches",
        json={"filters": {"minAge": 50, "maxAge": 20}},
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_post_rejects_unknown_tags(api_client, seeded) -> None:
    res = await api_client.post("/api/users/me/matches", json={"tags": ["Grumpy"]})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_missing_requester_is_404(api_client, seeded) -> None:
    assert (await api_client.get("/api/users/nobody/matches")).status_code == 404
    assert (await api_client.post("/api/users/nobody/matches", json={})).status_code == 404


@pytest.mark.asyncio
async def test_store_outage_is_503_not_empty(api_client, seeded, store_outage) -> None:
    res = await api_client.get("/api/users/me/matches")

    assert res.status_code == 503


@pytest.mark.asyncio
async def test_profile_write_refreshes_cached_matches(api_client, seeded) -> None:
    first = await api_client.get("/api/users/me/matches")
    assert [m["userId"] for m in first.json()["matches"]] == ["a", "e"]

    # a write that bypasses the service stays hidden behind the cached result
    await seeded.collection.insert_one({"tenantId": "test-tenant", "userId": "f", "tags": ["Chill"], "age": 31})
    cached = await api_client.get("/api/users/me/matches")
    assert [m["userId"] for m in cached.json()["matches"]] == ["a", "e"]

    await api_client.put("/api/profiles/e", json={"isDeactivated": True})
    second = await api_client.get("/api/users/me/matches")

    assert [m["userId"] for m in second.json()["matches"]] == ["a", "f"]
