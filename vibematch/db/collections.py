"""MongoDB collection names used by the vibematch service."""

from __future__ import annotations

PROFILES_COLLECTION = "profiles"

__all__ = ["PROFILES_COLLECTION"]
