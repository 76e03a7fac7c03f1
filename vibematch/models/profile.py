from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.coerce import (
    canonical_option,
    canonical_option_list,
    clean_text,
    coerce_float,
    coerce_int,
    option_lookup,
)
from ..utils.geo import parse_geojson_point

ALL = "All"

VIBE_OPTIONS = (
    "Chill",
    "Energetic",
    "Creative",
    "Analytical",
    "Adventurous",
    "Calm",
    "Passionate",
    "Curious",
    "Spontaneous",
    "Thoughtful",
    "Optimistic",
    "Playful",
    "Grounded",
    "Dreamy",
    "Focused",
)

MOOD_OPTIONS = (
    "Happy",
    "Relaxed",
    "Excited",
    "Reflective",
    "Motivated",
    "Peaceful",
    "Inspired",
    "Content",
    "Joyful",
    "Calm",
    "Hopeful",
    "Amused",
    "Enthusiastic",
    "Serene",
    "Vibrant",
)

GENDER_OPTIONS = ("Male", "Female", "Non-binary", "Prefer not to say")

SCHEDULE_OPTIONS = ("Early Bird", "Night Owl", "Flexible")

VIBE_LOOKUP = option_lookup(VIBE_OPTIONS)
MOOD_LOOKUP = option_lookup(MOOD_OPTIONS)
GENDER_LOOKUP = option_lookup(
    GENDER_OPTIONS,
    {
        "man": "Male",
        "men": "Male",
        "woman": "Female",
        "women": "Female",
        "nb": "Non-binary",
        "enby": "Non-binary",
        "prefernottosay": "Prefer not to say",
        "undisclosed": "Prefer not to say",
    },
)
SCHEDULE_LOOKUP = option_lookup(
    SCHEDULE_OPTIONS,
    {"early": "Early Bird", "morning": "Early Bird", "night": "Night Owl", "late": "Night Owl"},
)

MIN_PROFILE_AGE = 18
MAX_PROFILE_AGE = 120
MAX_IMAGE_URL_LENGTH = 2048


def normalize_location(raw: Any) -> Optional[Dict[str, float]]:
    """Accept ``{lat, lon}``, a nested GeoJSON point or a bare GeoJSON point.

    A pair is only returned when both coordinates are present and in range.
    """
    if isinstance(raw, GeoPoint):
        return {"lat": raw.lat, "lon": raw.lon}
    if not isinstance(raw, dict):
        return None
    lat = raw.get("lat", raw.get("latitude"))
    lon = raw.get("lon", raw.get("lng", raw.get("longitude")))
    if lat is None or lon is None:
        point = parse_geojson_point(raw.get("coordinates")) or parse_geojson_point(raw)
        if point:
            lat, lon = point["lat"], point["lon"]
    lat_val = coerce_float(lat, min_val=-90.0, max_val=90.0)
    lon_val = coerce_float(lon, min_val=-180.0, max_val=180.0)
    if lat_val is None or lon_val is None:
        return None
    return {"lat": lat_val, "lon": lon_val}


class GeoPoint(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class Profile(BaseModel):
    """A user's discoverable profile as read from the profile store.

    Values are normalized leniently: vocabulary entries outside the known
    options are dropped and unusable scalars become ``None``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId", min_length=1)
    name: str = ""
    bio: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    moods: List[str] = Field(default_factory=list)
    age: Optional[int] = None
    gender: Optional[str] = None
    schedule: Optional[str] = None
    pet_friendly: bool = Field(default=False, alias="petFriendly")
    location: Optional[GeoPoint] = None
    is_deactivated: bool = Field(default=False, alias="isDeactivated")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    match_filters: Optional[Dict[str, Any]] = Field(default=None, alias="matchFilters")
    created_at: Optional[int] = Field(default=None, alias="createdAt")
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return clean_text(value, 80) or ""

    @field_validator("bio", mode="before")
    @classmethod
    def _bio(cls, value: Any) -> Optional[str]:
        return clean_text(value, 600)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> List[str]:
        return canonical_option_list(value, VIBE_LOOKUP)

    @field_validator("moods", mode="before")
    @classmethod
    def _moods(cls, value: Any) -> List[str]:
        return canonical_option_list(value, MOOD_LOOKUP)

    @field_validator("age", mode="before")
    @classmethod
    def _age(cls, value: Any) -> Optional[int]:
        return coerce_int(value, min_val=MIN_PROFILE_AGE, max_val=MAX_PROFILE_AGE)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> Optional[str]:
        return canonical_option(value, GENDER_LOOKUP)

    @field_validator("schedule", mode="before")
    @classmethod
    def _schedule(cls, value: Any) -> Optional[str]:
        return canonical_option(value, SCHEDULE_LOOKUP)

    @field_validator("pet_friendly", "is_deactivated", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return value is True

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, value: Any) -> Optional[Dict[str, float]]:
        return normalize_location(value)

    @field_validator("image_url", mode="before")
    @classmethod
    def _image_url(cls, value: Any) -> Optional[str]:
        url = clean_text(value, MAX_IMAGE_URL_LENGTH + 1)
        # a truncated URL is a broken link; fall back to the placeholder instead
        if url is None or len(url) > MAX_IMAGE_URL_LENGTH:
            return None
        return url

    @field_validator("match_filters", mode="before")
    @classmethod
    def _match_filters(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Optional[int]:
        return coerce_int(value, min_val=0)


class ProfileUpdate(BaseModel):
    """Partial profile payload for merge-saves. Unset fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: Optional[str] = Field(default=None, max_length=80)
    bio: Optional[str] = Field(default=None, max_length=600)
    tags: Optional[List[str]] = None
    moods: Optional[List[str]] = None
    age: Optional[int] = Field(default=None, ge=MIN_PROFILE_AGE, le=MAX_PROFILE_AGE)
    gender: Optional[str] = None
    schedule: Optional[str] = None
    pet_friendly: Optional[bool] = Field(default=None, alias="petFriendly")
    location: Optional[GeoPoint] = None
    is_deactivated: Optional[bool] = Field(default=None, alias="isDeactivated")
    image_url: Optional[str] = Field(default=None, alias="imageUrl", max_length=MAX_IMAGE_URL_LENGTH)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        return canonical_option_list(value, VIBE_LOOKUP, strict=True)

    @field_validator("moods", mode="before")
    @classmethod
    def _moods(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        return canonical_option_list(value, MOOD_LOOKUP, strict=True)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        canonical = canonical_option(value, GENDER_LOOKUP)
        if canonical is None:
            raise ValueError(f"unknown gender: {value!r}")
        return canonical

    @field_validator("schedule", mode="before")
    @classmethod
    def _schedule(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        canonical = canonical_option(value, SCHEDULE_LOOKUP)
        if canonical is None:
            raise ValueError(f"unknown schedule: {value!r}")
        return canonical


__all__ = [
    "ALL",
    "GENDER_LOOKUP",
    "GENDER_OPTIONS",
    "GeoPoint",
    "MOOD_LOOKUP",
    "MOOD_OPTIONS",
    "Profile",
    "ProfileUpdate",
    "SCHEDULE_LOOKUP",
    "SCHEDULE_OPTIONS",
    "VIBE_LOOKUP",
    "VIBE_OPTIONS",
    "normalize_location",
]
