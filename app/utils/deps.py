from functools import lru_cache
from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.constants import ProgressBackendEnum
from app.core.database import get_db
from app.crud.base import ProgressRepository
from app.crud.course_progress import JSONProgressRepository, SQLProgressRepository
from app.services.course_progress import CourseProgressService
from app.services.watch_session import WatchSessionTracker, watch_session_tracker


@lru_cache
def get_json_repository(path: str) -> JSONProgressRepository:
    # One instance per document so its write lock is shared by every request
    return JSONProgressRepository(path)


def build_progress_repository(db: Session) -> ProgressRepository:
    if settings.PROGRESS_BACKEND == ProgressBackendEnum.DATABASE:
        return SQLProgressRepository(db)
    return get_json_repository(settings.PROGRESS_STORE_PATH)


def build_progress_service(db: Session) -> CourseProgressService:
    return CourseProgressService(build_progress_repository(db))


def get_progress_service(db: Session = Depends(get_db)) -> CourseProgressService:
    return build_progress_service(db)


def get_watch_session_tracker() -> WatchSessionTracker:
    return watch_session_tracker
