"""Store contract consumed by the match engine and services."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Protocol

from ..models.profile import Profile


class ProfileStore(Protocol):
    async def find_profiles_by_any_tag(
        self,
        tags: Iterable[str],
        *,
        timeout: Optional[float] = None,
    ) -> List[Profile]:
        """Return active profiles sharing at least one tag with ``tags``."""
        ...

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        ...

    async def save_profile(self, user_id: str, fields: Mapping[str, Any]) -> Profile:
        """Merge ``fields`` into the stored profile, creating it when missing."""
        ...


__all__ = ["ProfileStore"]
