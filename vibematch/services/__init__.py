from .match_engine import MatchEngine, passes_filters
from .match_service import MatchService, get_match_service, sort_matches
from .profile_service import ProfileService, get_profile_service, get_profile_store

__all__ = [
    "MatchEngine",
    "MatchService",
    "ProfileService",
    "get_match_service",
    "get_profile_service",
    "get_profile_store",
    "passes_filters",
    "sort_matches",
]
