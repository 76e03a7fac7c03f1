from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ..models.match import MatchOutcome, MatchRequest, MatchResponse, SortMode
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.match_service import MatchService, get_match_service
from .match_filters import reject_inverted_age_range

router = APIRouter()


def _respond(user_id: str, outcome: MatchOutcome) -> MatchResponse:
    if outcome.status == "unavailable":
        # distinct from an empty "ok" result: the store could not be checked
        raise HTTPException(status_code=503, detail="profile store unavailable")
    return MatchResponse(
        user_id=user_id,
        status=outcome.status,
        count=len(outcome.matches),
        matches=outcome.matches,
    )


@router.get("/users/{user_id}/matches", response_model=MatchResponse, response_model_by_alias=True)
async def list_matches(
    user_id: str,
    sort: SortMode = Query(default="none"),
    service: MatchService = Depends(get_match_service),
) -> MatchResponse:
    user = (user_id or "").strip()
    if not user:
        raise HTTPException(status_code=400, detail="user_id required")
    try:
        outcome = await service.find_matches_for_user(user, sort=sort)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None
    return _respond(user, outcome)


@router.post("/users/{user_id}/matches", response_model=MatchResponse, response_model_by_alias=True)
async def query_matches(
    user_id: str,
    payload: Optional[MatchRequest] = Body(default=None),
    service: MatchService = Depends(get_match_service),
) -> MatchResponse:
    user = (user_id or "").strip()
    if not user:
        raise HTTPException(status_code=400, detail="user_id required")
    request = payload or MatchRequest()
    if request.filters is not None:
        reject_inverted_age_range(request.filters)
    try:
        outcome = await service.find_matches_for_user(
            user,
            tags=request.tags,
            filters=request.filters,
            location=request.location,
            sort=request.sort,
        )
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None
    return _respond(user, outcome)
