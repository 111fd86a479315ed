import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from app.core.exceptions import DuplicateProgressError, InvalidProgressUpdate, ProgressStoreError
from app.crud.base import ProgressRepository
from app.schemas.achievement import AchievementDetail
from app.schemas.course_progress import CourseProgress, LessonProgress, ProgressSummary
from app.services import progress_engine
from app.services.achievement_catalog import get_achievement_details
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)


class CourseProgressService:
    """Progress store API: keyed lookups plus the two mutation paths.

    Missing records or lessons are not errors: mutations on them return
    ``None`` without writing anything.
    """

    def __init__(self, repository: ProgressRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    def _require_non_negative(self, **values: int):
        for name, value in values.items():
            if value < 0:
                raise InvalidProgressUpdate(f"{name} must not be negative (got {value})")

    def _log_new_achievements(self, before: CourseProgress, after: CourseProgress):
        earned = [a for a in after.achievements if a not in before.achievements]
        if earned:
            logger.info(
                f"User {after.user_id} earned {', '.join(earned)} in course {after.course_id}"
            )

    def initialize(self, user_id: str, course_id: str, lesson_ids: Sequence[str]) -> CourseProgress:
        existing = self.repository.get(user_id, course_id)
        if existing:
            logger.info(f"Progress for user {user_id} in course {course_id} already initialized")
            return existing

        progress = progress_engine.new_course_progress(user_id, course_id, lesson_ids, self.clock())
        try:
            self.repository.add(progress)
        except DuplicateProgressError:
            stored = self.repository.get(user_id, course_id)
            if stored is None:
                # The key is taken by a record that no longer parses
                raise ProgressStoreError(
                    f"Stored progress for user {user_id} in course {course_id} is malformed"
                ) from None
            logger.info(f"Progress for user {user_id} in course {course_id} was initialized concurrently")
            return stored

        logger.info(f"Initialized progress for user {user_id} in course {course_id} with {len(progress.lessons)} lessons")
        return progress

    def get_by_user_and_course(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        return self.repository.get(user_id, course_id)

    def get_all_for_user(self, user_id: str) -> List[CourseProgress]:
        return self.repository.get_by_user(user_id)

    def update_lesson_completion(
        self,
        user_id: str,
        course_id: str,
        lesson_id: str,
        completed: bool,
        additional_time: int = 0,
    ) -> Optional[CourseProgress]:
        self._require_non_negative(additional_time=additional_time)

        progress = self.repository.get(user_id, course_id)
        if not progress:
            logger.debug(f"No progress for user {user_id} in course {course_id}; completion ignored")
            return None

        updated = progress_engine.apply_lesson_completion(
            progress, lesson_id, completed, additional_time, self.clock()
        )
        if updated is None:
            logger.debug(f"Lesson {lesson_id} not part of course {course_id}; completion ignored")
            return None

        self.repository.upsert(updated)
        self._log_new_achievements(progress, updated)
        return updated

    def update_watch_progress(
        self,
        user_id: str,
        course_id: str,
        lesson_id: str,
        watch_time: int,
        current_position: int,
    ) -> Optional[CourseProgress]:
        self._require_non_negative(watch_time=watch_time, current_position=current_position)

        progress = self.repository.get(user_id, course_id)
        if not progress:
            logger.debug(f"No progress for user {user_id} in course {course_id}; watch time ignored")
            return None

        updated = progress_engine.apply_watch_progress(
            progress, lesson_id, watch_time, current_position, self.clock()
        )
        if updated is None:
            logger.debug(f"Lesson {lesson_id} not part of course {course_id}; watch time ignored")
            return None

        self.repository.upsert(updated)
        return updated

    def get_user_summary(self, user_id: str) -> ProgressSummary:
        return progress_engine.summarize_progress(user_id, self.get_all_for_user(user_id))

    @staticmethod
    def calculate_completion_percentage(lessons: Sequence[LessonProgress]) -> int:
        return progress_engine.calculate_completion_percentage(lessons)

    @staticmethod
    def format_time_spent(seconds: int) -> str:
        return progress_engine.format_time_spent(seconds)

    @staticmethod
    def get_achievement_details(achievement_id: str) -> AchievementDetail:
        return get_achievement_details(achievement_id)
