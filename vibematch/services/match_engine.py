"""Candidate selection: tag gate, compatibility filters and distance annotation."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from ..models.filters import MatchFilters
from ..models.match import MatchOutcome, MatchResult, Requester
from ..models.profile import ALL, VIBE_LOOKUP, Profile
from ..repositories.base import ProfileStore
from ..repositories.exceptions import StoreUnavailableError
from ..utils.coerce import canonical_option_list
from ..utils.geo import haversine_km

LOGGER = logging.getLogger("uvicorn.error")


def _passes_age(candidate: Profile, filters: MatchFilters) -> bool:
    if not filters.has_age_bounds:
        return True
    # unknown age never satisfies an age bound
    if candidate.age is None:
        return False
    if filters.min_age is not None and candidate.age < filters.min_age:
        return False
    if filters.max_age is not None and candidate.age > filters.max_age:
        return False
    return True


def _passes_choice(value: Optional[str], wanted: str) -> bool:
    return wanted == ALL or value == wanted


def passes_filters(candidate: Profile, filters: MatchFilters) -> bool:
    """Scalar and categorical predicates; distance is handled separately."""
    if not _passes_age(candidate, filters):
        return False
    if not _passes_choice(candidate.gender, filters.gender):
        return False
    if not _passes_choice(candidate.schedule, filters.schedule):
        return False
    # petFriendly=False is "no constraint", not "must not be pet friendly"
    if filters.pet_friendly and not candidate.pet_friendly:
        return False
    return True


class MatchEngine:
    """Selects compatible candidates for a requester.

    The engine keeps no state between calls. The profile store is expected to
    narrow the population to profiles sharing at least one tag; the engine
    re-applies that gate along with every other predicate.

    Candidates without a location pass the distance filter when
    ``include_unlocated`` is true (the default) and are dropped otherwise.
    """

    def __init__(self, store: ProfileStore, *, include_unlocated: bool = True) -> None:
        self._store = store
        self._include_unlocated = include_unlocated

    async def find_matches(
        self,
        requester: Requester,
        requester_tags: Iterable[str],
        filters: MatchFilters,
        *,
        timeout: Optional[float] = None,
    ) -> MatchOutcome:
        tags = canonical_option_list(list(requester_tags or []), VIBE_LOOKUP, limit=len(VIBE_LOOKUP))
        if not tags:
            return MatchOutcome(status="no_tags")

        try:
            population = await self._store.find_profiles_by_any_tag(tags, timeout=timeout)
        except StoreUnavailableError as exc:
            LOGGER.warning("Match lookup for userId=%s failed: %s", requester.user_id, exc)
            return MatchOutcome(status="unavailable", error=str(exc))

        tag_set = set(tags)
        matches: List[MatchResult] = []
        for candidate in population:
            try:
                result = self._evaluate(candidate, requester, tag_set, filters)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Skipping candidate userId=%s: %s", getattr(candidate, "user_id", None), exc)
                continue
            if result is not None:
                matches.append(result)

        LOGGER.debug(
            "Matched %s of %s candidates for userId=%s",
            len(matches),
            len(population),
            requester.user_id,
        )
        return MatchOutcome(status="ok", matches=matches)

    def _evaluate(
        self,
        candidate: Profile,
        requester: Requester,
        tags: Set[str],
        filters: MatchFilters,
    ) -> Optional[MatchResult]:
        # deactivated profiles are rejected before any other predicate looks at them
        if candidate.is_deactivated:
            return None
        if candidate.user_id == requester.user_id:
            return None
        if tags.isdisjoint(candidate.tags):
            return None
        if not passes_filters(candidate, filters):
            return None

        distance_km: Optional[float] = None
        origin = requester.location
        if origin is not None:
            if candidate.location is not None:
                distance_km = haversine_km(
                    origin.lat,
                    origin.lon,
                    candidate.location.lat,
                    candidate.location.lon,
                )
                if filters.max_distance_km is not None and distance_km > filters.max_distance_km:
                    return None
            elif filters.max_distance_km is not None and not self._include_unlocated:
                return None

        return MatchResult.from_profile(candidate, distance_km)


__all__ = ["MatchEngine", "passes_filters"]
