from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.schemas.course_progress import CourseProgress


def dump_progress(progress: CourseProgress) -> Dict[str, Any]:
    """Serialize a record to its persisted camelCase shape."""
    return progress.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProgressRepository(ABC):
    """Keyed storage of CourseProgress records, one per (user_id, course_id)."""

    @abstractmethod
    def get(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        ...

    @abstractmethod
    def get_by_user(self, user_id: str) -> List[CourseProgress]:
        ...

    @abstractmethod
    def get_all(self) -> List[CourseProgress]:
        ...

    @abstractmethod
    def add(self, progress: CourseProgress) -> CourseProgress:
        """Insert a new record; raises DuplicateProgressError if the pair exists."""

    @abstractmethod
    def upsert(self, progress: CourseProgress) -> CourseProgress:
        """Replace the record for the pair as a whole, inserting it if absent."""
