from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.response import APIResponse
from app.schemas.course_progress import (
    CourseProgress,
    CourseProgressCreate,
    LessonCompletionUpdate,
    ProgressSummary,
    WatchHeartbeat,
    WatchProgressUpdate,
    WatchSessionRead,
    WatchSessionStopped,
)
from app.services.course_progress import CourseProgressService
from app.services.watch_session import WatchSessionTracker
from app.utils import deps
from app.utils.logger import setup_logger

logger = setup_logger("progress_api", "progress_api.log")

router = APIRouter()

NO_MATCHING_PROGRESS = "No matching progress record; nothing was updated"


@router.post("/users/{user_id}/courses/{course_id}", response_model=APIResponse[CourseProgress])
async def initialize_course_progress(
    *,
    user_id: str,
    course_id: str,
    progress_in: CourseProgressCreate,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    progress = service.initialize(user_id, course_id, progress_in.lesson_ids)
    return APIResponse(message="Course progress initialized successfully", data=progress)


@router.get("/users/{user_id}/courses/{course_id}", response_model=APIResponse[CourseProgress])
async def get_course_progress(
    *,
    user_id: str,
    course_id: str,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    progress = service.get_by_user_and_course(user_id, course_id)
    if not progress:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No progress found for this user and course."
        )
    return APIResponse(message="Course progress retrieved successfully", data=progress)


@router.get("/users/{user_id}", response_model=APIResponse[List[CourseProgress]])
async def get_user_progress(
    *,
    user_id: str,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    progress = service.get_all_for_user(user_id)
    return APIResponse(message="User progress retrieved successfully", data=progress)


@router.get("/users/{user_id}/summary", response_model=APIResponse[ProgressSummary])
async def get_user_summary(
    *,
    user_id: str,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    summary = service.get_user_summary(user_id)
    return APIResponse(message="Progress summary retrieved successfully", data=summary)


@router.post(
    "/users/{user_id}/courses/{course_id}/lessons/{lesson_id}/completion",
    response_model=APIResponse[Optional[CourseProgress]]
)
async def update_lesson_completion(
    *,
    user_id: str,
    course_id: str,
    lesson_id: str,
    completion_in: LessonCompletionUpdate,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    progress = service.update_lesson_completion(
        user_id, course_id, lesson_id, completion_in.completed, completion_in.additional_time
    )
    if progress is None:
        return APIResponse(message=NO_MATCHING_PROGRESS, data=None)

    logger.info(f"User {user_id} set lesson {lesson_id} completed={completion_in.completed} in course {course_id}")
    return APIResponse(message="Lesson progress updated successfully", data=progress)


@router.post(
    "/users/{user_id}/courses/{course_id}/lessons/{lesson_id}/watch",
    response_model=APIResponse[Optional[CourseProgress]]
)
async def update_watch_progress(
    *,
    user_id: str,
    course_id: str,
    lesson_id: str,
    watch_in: WatchProgressUpdate,
    service: CourseProgressService = Depends(deps.get_progress_service)
):
    progress = service.update_watch_progress(
        user_id, course_id, lesson_id, watch_in.watch_time, watch_in.current_position
    )
    if progress is None:
        return APIResponse(message=NO_MATCHING_PROGRESS, data=None)
    return APIResponse(message="Watch progress updated successfully", data=progress)


@router.post(
    "/users/{user_id}/courses/{course_id}/lessons/{lesson_id}/session",
    response_model=APIResponse[WatchSessionRead]
)
async def start_watch_session(
    *,
    user_id: str,
    course_id: str,
    lesson_id: str,
    service: CourseProgressService = Depends(deps.get_progress_service),
    tracker: WatchSessionTracker = Depends(deps.get_watch_session_tracker)
):
    session = tracker.start(service, user_id, course_id, lesson_id)
    return APIResponse(message="Watch session started", data=session.to_schema())


@router.put(
    "/users/{user_id}/courses/{course_id}/lessons/{lesson_id}/session",
    response_model=APIResponse[WatchSessionRead]
)
async def watch_session_heartbeat(
    *,
    user_id: str,
    course_id: str,
    lesson_id: str,
    heartbeat_in: WatchHeartbeat,
    tracker: WatchSessionTracker = Depends(deps.get_watch_session_tracker)
):
    session = tracker.heartbeat(user_id, course_id, lesson_id, heartbeat_in.current_position)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No open watch session for this lesson.")
    return APIResponse(message="Watch session updated", data=session.to_schema())


@router.delete(
    "/users/{user_id}/courses/{course_id}/lessons/{lesson_id}/session",
    response_model=APIResponse[WatchSessionStopped]
)
async def stop_watch_session(
    *,
    user_id: str,
    course_id: str,
    lesson_id: str,
    service: CourseProgressService = Depends(deps.get_progress_service),
    tracker: WatchSessionTracker = Depends(deps.get_watch_session_tracker)
):
    stopped = tracker.stop(service, user_id, course_id, lesson_id)
    if not stopped:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No open watch session for this lesson.")

    session, flushed, progress = stopped
    return APIResponse(
        message="Watch session stopped",
        data=WatchSessionStopped(session=session.to_schema(), flushed_seconds=flushed, progress=progress)
    )
