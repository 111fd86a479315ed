from fastapi import APIRouter, Query

from app.schemas.response import APIResponse
from app.schemas.utility import FormattedTime
from app.services.progress_engine import format_time_spent

router = APIRouter()


@router.get("/format-time", response_model=APIResponse[FormattedTime])
async def format_time(seconds: int = Query(..., ge=0)):
    return APIResponse(
        message="Time formatted successfully",
        data=FormattedTime(seconds=seconds, formatted=format_time_spent(seconds))
    )
