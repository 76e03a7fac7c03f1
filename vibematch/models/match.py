from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.avatar import placeholder_avatar
from ..utils.coerce import canonical_option_list
from .filters import MatchFilters
from .profile import VIBE_LOOKUP, GeoPoint, Profile

MatchStatus = Literal["ok", "no_tags", "unavailable"]
SortMode = Literal["none", "distance", "name"]


class Requester(BaseModel):
    """The user asking for matches: identity plus optional distance origin."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    location: Optional[GeoPoint] = None

    @classmethod
    def from_profile(cls, profile: Profile, location: Optional[GeoPoint] = None) -> "Requester":
        return cls(user_id=profile.user_id, location=location or profile.location)


class MatchResult(Profile):
    """A candidate profile annotated with its distance from the requester."""

    distance_km: Optional[float] = Field(default=None, alias="distanceKm")

    @classmethod
    def from_profile(cls, profile: Profile, distance_km: Optional[float] = None) -> "MatchResult":
        data = profile.model_dump(by_alias=True, exclude={"match_filters"})
        data["imageUrl"] = profile.image_url or placeholder_avatar(profile.name)
        data["distanceKm"] = distance_km
        return cls.model_validate(data)


class MatchOutcome(BaseModel):
    """Result of one match computation.

    ``unavailable`` means the profile store could not be read, which callers
    must not confuse with an ``ok`` outcome that simply has no matches.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: MatchStatus = "ok"
    matches: List[MatchResult] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "unavailable"


class MatchRequest(BaseModel):
    """Explicit overrides accepted by the match endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    tags: Optional[List[str]] = None
    filters: Optional[MatchFilters] = None
    location: Optional[GeoPoint] = None
    sort: SortMode = "none"

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        return canonical_option_list(value, VIBE_LOOKUP, strict=True)


class MatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    status: MatchStatus
    count: int
    matches: List[MatchResult] = Field(default_factory=list)


__all__ = [
    "MatchOutcome",
    "MatchRequest",
    "MatchResponse",
    "MatchResult",
    "MatchStatus",
    "Requester",
    "SortMode",
]
