from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Older stored records carry naive ISO strings; streak math needs aware values
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProgressModel(BaseModel):
    """Base for progress schemas: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LessonProgress(ProgressModel):
    lesson_id: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    time_spent: int = 0

    # Video tracking fields. Records written by the simple schema omit them.
    video_watch_time: Optional[int] = None
    last_watch_position: Optional[int] = None
    watch_count: Optional[int] = None

    @field_validator("completed_at")
    @classmethod
    def normalize_completed_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class CourseProgress(ProgressModel):
    course_id: str
    user_id: str
    enrolled_at: datetime
    last_accessed_at: datetime
    total_time_spent: int = 0
    lessons: List[LessonProgress] = Field(default_factory=list)
    completion_percentage: int = 0
    current_streak: int = 1
    last_activity_date: Optional[datetime] = None
    achievements: List[str] = Field(default_factory=list)

    @field_validator("enrolled_at", "last_accessed_at", "last_activity_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def completed_lesson_count(self) -> int:
        return sum(1 for lesson in self.lessons if lesson.completed)

    def find_lesson(self, lesson_id: str) -> Optional[LessonProgress]:
        return next((lesson for lesson in self.lessons if lesson.lesson_id == lesson_id), None)


class CourseProgressCreate(ProgressModel):
    lesson_ids: List[str] = Field(..., description="Ordered lesson ids of the course at enrollment time.")


class LessonCompletionUpdate(ProgressModel):
    completed: bool
    additional_time: int = Field(0, ge=0, description="Seconds spent on the lesson since the last update.")


class WatchProgressUpdate(ProgressModel):
    watch_time: int = Field(..., ge=0, description="Seconds of video watched since the last update.")
    current_position: int = Field(0, ge=0, description="Current playback position in seconds.")


class WatchHeartbeat(ProgressModel):
    current_position: int = Field(..., ge=0)


class WatchSessionRead(ProgressModel):
    user_id: str
    course_id: str
    lesson_id: str
    started_at: datetime
    last_flushed_at: datetime
    current_position: int = 0


class WatchSessionStopped(ProgressModel):
    session: WatchSessionRead
    flushed_seconds: int
    progress: Optional[CourseProgress] = None


class ProgressSummary(ProgressModel):
    user_id: str
    course_count: int = 0
    total_time_spent: int = 0
    formatted_time_spent: str = "0m"
    total_lessons_completed: int = 0
    total_lessons: int = 0
    average_completion: int = 0
    in_progress: List[CourseProgress] = Field(default_factory=list)
    completed: List[CourseProgress] = Field(default_factory=list)
    not_started: List[CourseProgress] = Field(default_factory=list)
