from fastapi import APIRouter, Depends, HTTPException

from ..models.filters import MatchFilters
from ..repositories.exceptions import NotFoundRepositoryError, StoreUnavailableError
from ..services.profile_service import ProfileService, get_profile_service

router = APIRouter()


def reject_inverted_age_range(filters: MatchFilters) -> None:
    if filters.has_inverted_age_range:
        raise HTTPException(status_code=400, detail="minAge must not exceed maxAge")


@router.get("/users/{user_id}/match-filters", response_model=MatchFilters, response_model_by_alias=True)
async def get_match_filters(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
) -> MatchFilters:
    user = (user_id or "").strip()
    if not user:
        raise HTTPException(status_code=400, detail="user_id required")
    try:
        return await service.get_match_filters(user)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="profile store unavailable") from None


@router.put("/users/{user_id}/match-filters", response_model=MatchFilters, response_model_by_alias=True)
async def save_match_filters(
    user_id: str,
    payload: MatchFilters,
    service: ProfileService = Depends(get_profile_service),
) -> MatchFilters:
    user = (user_id or "").strip()
    if not user:
        raise HTTPException(status_code=400, detail="user_id required")
    reject_inverted_age_range(payload)
    try:
        return await service.save_match_filters(user, payload)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="profile store unavailable") from None
