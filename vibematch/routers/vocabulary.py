from typing import Dict, List

from fastapi import APIRouter

from ..models.profile import GENDER_OPTIONS, MOOD_OPTIONS, SCHEDULE_OPTIONS, VIBE_OPTIONS

router = APIRouter()


@router.get("/vocabulary")
async def get_vocabulary() -> Dict[str, List[str]]:
    return {
        "vibes": list(VIBE_OPTIONS),
        "moods": list(MOOD_OPTIONS),
        "genders": list(GENDER_OPTIONS),
        "schedules": list(SCHEDULE_OPTIONS),
    }
