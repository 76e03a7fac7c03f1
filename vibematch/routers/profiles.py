"""Profile read / merge-save endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..models.profile import Profile, ProfileUpdate
from ..repositories.exceptions import StoreUnavailableError
from ..services.profile_service import ProfileService, get_profile_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _user_id_or_400(user_id: str) -> str:
    user = (user_id or "").strip()
    if not user:
        raise HTTPException(status_code=400, detail="user_id required")
    return user


@router.get("/{user_id}", response_model=Profile, response_model_by_alias=True)
async def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    try:
        profile = await service.get_profile(_user_id_or_400(user_id))
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="profile store unavailable") from None
    if profile is None:
        raise HTTPException(status_code=404, detail="profile not found")
    return profile


@router.put("/{user_id}", response_model=Profile, response_model_by_alias=True)
async def save_profile(
    user_id: str,
    payload: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    try:
        return await service.save_profile(_user_id_or_400(user_id), payload)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="profile store unavailable") from None


__all__ = ["router"]
