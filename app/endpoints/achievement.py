from typing import List
from fastapi import APIRouter

from app.schemas.achievement import AchievementRead
from app.schemas.response import APIResponse
from app.services.achievement_catalog import get_achievement_details, list_achievements

router = APIRouter()


@router.get("/", response_model=APIResponse[List[AchievementRead]])
async def get_achievements():
    return APIResponse(message="Achievements retrieved successfully", data=list_achievements())


@router.get("/{achievement_id}", response_model=APIResponse[AchievementRead])
async def get_achievement(achievement_id: str):
    detail = get_achievement_details(achievement_id)
    return APIResponse(
        message="Achievement retrieved successfully",
        data=AchievementRead(id=achievement_id, **detail.model_dump())
    )
