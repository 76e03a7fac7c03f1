import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .profile import ALL, GENDER_LOOKUP, SCHEDULE_LOOKUP
from ..utils.coerce import canonical_option, clean_text

LOGGER = logging.getLogger("uvicorn.error")


def _canonical_constraint(value: Any, lookup: dict, label: str) -> str:
    if value is None:
        return ALL
    text = clean_text(value, 32)
    if text is None or text.lower() in ("all", "any", "everyone"):
        return ALL
    canonical = canonical_option(text, lookup)
    if canonical is None:
        raise ValueError(f"unknown {label}: {value!r}")
    return canonical


class MatchFilters(BaseModel):
    """Caller-supplied matching constraints.

    ``"All"`` (gender, schedule), ``None`` (age bounds, distance) and
    ``petFriendly=False`` mean "no constraint". ``minVibeScore`` is accepted
    and persisted but not applied by the engine.
    """

    model_config = ConfigDict(populate_by_name=True)

    min_age: Optional[int] = Field(default=18, alias="minAge", ge=0, le=150)
    max_age: Optional[int] = Field(default=99, alias="maxAge", ge=0, le=150)
    gender: str = ALL
    max_distance_km: Optional[float] = Field(default=None, alias="maxDistanceKm", ge=0.0, le=25_000.0)
    min_vibe_score: int = Field(default=0, alias="minVibeScore", ge=0, le=100)
    schedule: str = ALL
    pet_friendly: bool = Field(default=False, alias="petFriendly")

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> str:
        return _canonical_constraint(value, GENDER_LOOKUP, "gender")

    @field_validator("schedule", mode="before")
    @classmethod
    def _schedule(cls, value: Any) -> str:
        return _canonical_constraint(value, SCHEDULE_LOOKUP, "schedule")

    @classmethod
    def from_saved(cls, raw: Optional[Dict[str, Any]]) -> "MatchFilters":
        """Load a saved preference, falling back to defaults when unusable."""
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            LOGGER.warning("Ignoring unreadable saved match filters: %s", exc.errors(include_url=False))
            return cls()

    @property
    def has_age_bounds(self) -> bool:
        return self.min_age is not None or self.max_age is not None

    @property
    def has_inverted_age_range(self) -> bool:
        return (
            self.min_age is not None
            and self.max_age is not None
            and self.min_age > self.max_age
        )


__all__ = ["MatchFilters"]
