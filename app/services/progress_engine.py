"""Pure progress computations.

Nothing here performs I/O or reads the clock: callers pass ``now`` in and get a
new ``CourseProgress`` back, leaving the input record untouched.
"""
import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from app.core.constants import (
    SECONDS_PER_DAY,
    FIVE_LESSONS_THRESHOLD,
    WEEK_STREAK_THRESHOLD,
    FIVE_HOURS_THRESHOLD_SECONDS,
    AchievementEnum,
)
from app.schemas.course_progress import CourseProgress, LessonProgress, ProgressSummary


def new_course_progress(user_id: str, course_id: str, lesson_ids: Sequence[str], now: datetime) -> CourseProgress:
    return CourseProgress(
        course_id=course_id,
        user_id=user_id,
        enrolled_at=now,
        last_accessed_at=now,
        total_time_spent=0,
        lessons=[
            LessonProgress(
                lesson_id=lesson_id,
                completed=False,
                time_spent=0,
                video_watch_time=0,
                last_watch_position=0,
                watch_count=0,
            )
            for lesson_id in lesson_ids
        ],
        completion_percentage=0,
        current_streak=1,
        last_activity_date=now,
        achievements=[],
    )


def calculate_completion_percentage(lessons: Sequence[LessonProgress]) -> int:
    if not lessons:
        return 0
    completed = sum(1 for lesson in lessons if lesson.completed)
    # Half-up rounding: 12.5 -> 13
    return int(math.floor(completed * 100 / len(lessons) + 0.5))


def calculate_streak(current_streak: int, last_activity_date: Optional[datetime], now: datetime) -> int:
    """Streak after an activity at ``now``.

    Days are counted as whole 24h periods of elapsed time since the previous
    activity, not as calendar dates.
    """
    if last_activity_date is None:
        return 1

    elapsed_days = math.floor((now - last_activity_date).total_seconds() / SECONDS_PER_DAY)

    if elapsed_days <= 0:
        return current_streak
    if elapsed_days == 1:
        return current_streak + 1
    return 1


def check_achievements(progress: CourseProgress) -> List[str]:
    achievements = list(progress.achievements)
    completed_count = progress.completed_lesson_count

    earned = {
        AchievementEnum.FIRST_LESSON: completed_count >= 1,
        AchievementEnum.FIVE_LESSONS: completed_count >= FIVE_LESSONS_THRESHOLD,
        AchievementEnum.COURSE_COMPLETE: progress.completion_percentage == 100,
        AchievementEnum.WEEK_STREAK: progress.current_streak >= WEEK_STREAK_THRESHOLD,
        AchievementEnum.FIVE_HOURS: progress.total_time_spent >= FIVE_HOURS_THRESHOLD_SECONDS,
    }

    for achievement, qualifies in earned.items():
        if qualifies and achievement.value not in achievements:
            achievements.append(achievement.value)

    return achievements


def _touch(progress: CourseProgress, time_delta: int, now: datetime) -> None:
    progress.current_streak = calculate_streak(progress.current_streak, progress.last_activity_date, now)
    progress.last_accessed_at = now
    progress.last_activity_date = now
    progress.total_time_spent += time_delta


def apply_lesson_completion(
    progress: CourseProgress,
    lesson_id: str,
    completed: bool,
    additional_time: int,
    now: datetime,
) -> Optional[CourseProgress]:
    """Mark a lesson (in)complete. Returns ``None`` if the lesson is not part of the record."""
    updated = progress.model_copy(deep=True)
    lesson = updated.find_lesson(lesson_id)
    if lesson is None:
        return None

    lesson.completed = completed
    if completed:
        lesson.completed_at = now
    lesson.time_spent += additional_time

    _touch(updated, additional_time, now)
    updated.completion_percentage = calculate_completion_percentage(updated.lessons)
    updated.achievements = check_achievements(updated)
    return updated


def apply_watch_progress(
    progress: CourseProgress,
    lesson_id: str,
    watch_time: int,
    current_position: int,
    now: datetime,
) -> Optional[CourseProgress]:
    """Accumulate watched seconds on a lesson.

    Completion percentage and achievements are left as they were; only the
    completion path recomputes them.
    """
    updated = progress.model_copy(deep=True)
    lesson = updated.find_lesson(lesson_id)
    if lesson is None:
        return None

    lesson.video_watch_time = (lesson.video_watch_time or 0) + watch_time
    lesson.last_watch_position = current_position
    lesson.watch_count = (lesson.watch_count or 0) + 1
    lesson.time_spent += watch_time

    _touch(updated, watch_time, now)
    return updated


def format_time_spent(seconds: int) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def summarize_progress(user_id: str, records: Iterable[CourseProgress]) -> ProgressSummary:
    records = list(records)
    total_time_spent = sum(p.total_time_spent for p in records)

    average_completion = 0
    if records:
        average = sum(p.completion_percentage for p in records) / len(records)
        average_completion = int(math.floor(average + 0.5))

    return ProgressSummary(
        user_id=user_id,
        course_count=len(records),
        total_time_spent=total_time_spent,
        formatted_time_spent=format_time_spent(total_time_spent),
        total_lessons_completed=sum(p.completed_lesson_count for p in records),
        total_lessons=sum(len(p.lessons) for p in records),
        average_completion=average_completion,
        in_progress=[p for p in records if 0 < p.completion_percentage < 100],
        completed=[p for p in records if p.completion_percentage == 100],
        not_started=[p for p in records if p.completion_percentage == 0],
    )
