import pytest
from datetime import datetime, timedelta, timezone

from app.schemas.course_progress import CourseProgress, LessonProgress
from app.services import progress_engine

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _progress(lesson_count=4, **overrides) -> CourseProgress:
    progress = progress_engine.new_course_progress(
        "user-1", "course-1", [f"l{i}" for i in range(1, lesson_count + 1)], NOW
    )
    return progress.model_copy(update=overrides)


def _lessons(completed: int, total: int):
    return [LessonProgress(lesson_id=f"l{i}", completed=i < completed) for i in range(total)]


def test_new_course_progress_starts_empty():
    progress = progress_engine.new_course_progress("u", "c", ["l1", "l2", "l3"], NOW)

    assert [l.lesson_id for l in progress.lessons] == ["l1", "l2", "l3"]
    assert all(not l.completed for l in progress.lessons)
    assert all(l.time_spent == 0 and l.watch_count == 0 for l in progress.lessons)
    assert progress.completion_percentage == 0
    assert progress.current_streak == 1
    assert progress.achievements == []
    assert progress.enrolled_at == progress.last_activity_date == NOW


def test_new_course_progress_keeps_one_lesson_per_supplied_id():
    progress = progress_engine.new_course_progress("u", "c", ["l1", "l2", "l1"], NOW)
    assert [l.lesson_id for l in progress.lessons] == ["l1", "l2", "l1"]

    updated = progress_engine.apply_lesson_completion(progress, "l1", True, 0, NOW)
    # Only the first matching entry is marked, the repeat still counts toward the total
    assert [l.completed for l in updated.lessons] == [True, False, False]
    assert updated.completion_percentage == 33


@pytest.mark.parametrize("completed,total,expected", [
    (0, 0, 0),
    (0, 4, 0),
    (1, 4, 25),
    (2, 4, 50),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (4, 4, 100),
])
def test_calculate_completion_percentage(completed, total, expected):
    assert progress_engine.calculate_completion_percentage(_lessons(completed, total)) == expected


def test_streak_without_previous_activity_is_one():
    assert progress_engine.calculate_streak(5, None, NOW) == 1


@pytest.mark.parametrize("elapsed,expected", [
    (timedelta(hours=0), 3),
    (timedelta(hours=23, minutes=59), 3),
    (timedelta(hours=24), 4),
    (timedelta(hours=25), 4),
    (timedelta(hours=47, minutes=59), 4),
    (timedelta(hours=48), 1),
    (timedelta(hours=50), 1),
    (timedelta(days=30), 1),
])
def test_streak_counts_elapsed_days(elapsed, expected):
    assert progress_engine.calculate_streak(3, NOW, NOW + elapsed) == expected


def test_streak_ignores_calendar_midnight():
    # 20 hours apart across midnight is still the same elapsed day
    last = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
    now = datetime(2026, 3, 2, 4, 0, tzinfo=timezone.utc)
    assert progress_engine.calculate_streak(2, last, now) == 2


def test_streak_with_clock_moved_backwards_is_unchanged():
    assert progress_engine.calculate_streak(4, NOW, NOW - timedelta(hours=30)) == 4


def test_lesson_completion_updates_lesson_and_totals():
    later = NOW + timedelta(hours=2)
    updated = progress_engine.apply_lesson_completion(_progress(), "l2", True, 120, later)

    lesson = updated.find_lesson("l2")
    assert lesson.completed is True
    assert lesson.completed_at == later
    assert lesson.time_spent == 120
    assert updated.total_time_spent == 120
    assert updated.completion_percentage == 25
    assert updated.last_accessed_at == later
    assert updated.last_activity_date == later
    assert updated.achievements == ["first_lesson"]


def test_lesson_completion_does_not_mutate_input():
    original = _progress()
    progress_engine.apply_lesson_completion(original, "l1", True, 60, NOW)

    assert original.find_lesson("l1").completed is False
    assert original.total_time_spent == 0


def test_lesson_completion_unknown_lesson_returns_none():
    assert progress_engine.apply_lesson_completion(_progress(), "missing", True, 0, NOW) is None


def test_uncompleting_keeps_completed_at_and_achievements():
    done = progress_engine.apply_lesson_completion(_progress(), "l1", True, 0, NOW)
    undone = progress_engine.apply_lesson_completion(done, "l1", False, 0, NOW + timedelta(minutes=5))

    lesson = undone.find_lesson("l1")
    assert lesson.completed is False
    assert lesson.completed_at == NOW
    assert undone.completion_percentage == 0
    assert undone.achievements == ["first_lesson"]


def test_recompleting_refreshes_completed_at():
    done = progress_engine.apply_lesson_completion(_progress(), "l1", True, 0, NOW)
    later = NOW + timedelta(hours=1)
    again = progress_engine.apply_lesson_completion(done, "l1", True, 0, later)

    assert again.find_lesson("l1").completed_at == later
    assert again.achievements.count("first_lesson") == 1


def test_check_achievements_thresholds():
    progress = _progress(lesson_count=5)
    for lesson in progress.lessons:
        lesson.completed = True
    progress.completion_percentage = 100
    progress.current_streak = 7
    progress.total_time_spent = 18000

    assert progress_engine.check_achievements(progress) == [
        "first_lesson", "five_lessons", "course_complete", "week_streak", "five_hours",
    ]


def test_five_hours_needs_full_threshold():
    progress = _progress(total_time_spent=17999)
    assert "five_hours" not in progress_engine.check_achievements(progress)

    progress.total_time_spent = 18000
    assert "five_hours" in progress_engine.check_achievements(progress)


def test_check_achievements_keeps_previous_even_when_condition_fails():
    progress = _progress(achievements=["week_streak"], current_streak=1)
    assert progress_engine.check_achievements(progress) == ["week_streak"]


def test_watch_progress_accumulates_without_touching_completion():
    first = progress_engine.apply_watch_progress(_progress(), "l1", 30, 30, NOW)
    second = progress_engine.apply_watch_progress(first, "l1", 45, 75, NOW + timedelta(minutes=1))

    lesson = second.find_lesson("l1")
    assert lesson.video_watch_time == 75
    assert lesson.watch_count == 2
    assert lesson.time_spent == 75
    assert lesson.last_watch_position == 75
    assert second.total_time_spent == 75
    assert second.completion_percentage == 0
    assert second.achievements == []


def test_watch_progress_does_not_award_achievements():
    progress = _progress(total_time_spent=17990)
    updated = progress_engine.apply_watch_progress(progress, "l1", 60, 0, NOW)

    assert updated.total_time_spent == 18050
    assert "five_hours" not in updated.achievements


def test_watch_progress_fills_missing_video_fields():
    progress = _progress()
    progress.lessons[0] = LessonProgress(lesson_id="l1", time_spent=10)

    updated = progress_engine.apply_watch_progress(progress, "l1", 20, 5, NOW)

    lesson = updated.find_lesson("l1")
    assert lesson.video_watch_time == 20
    assert lesson.watch_count == 1
    assert lesson.time_spent == 30


def test_watch_progress_updates_streak():
    progress = _progress(current_streak=2)
    updated = progress_engine.apply_watch_progress(progress, "l1", 10, 0, NOW + timedelta(hours=25))
    assert updated.current_streak == 3


@pytest.mark.parametrize("seconds,expected", [
    (0, "0m"),
    (59, "0m"),
    (125, "2m"),
    (3600, "1h 0m"),
    (3725, "1h 2m"),
    (18000, "5h 0m"),
])
def test_format_time_spent(seconds, expected):
    assert progress_engine.format_time_spent(seconds) == expected


def test_summarize_progress_buckets_courses():
    not_started = _progress()
    in_progress = _progress(course_id="course-2", completion_percentage=50, total_time_spent=600)
    in_progress.lessons[0].completed = True
    in_progress.lessons[1].completed = True
    done = _progress(lesson_count=1, course_id="course-3", completion_percentage=100, total_time_spent=3000)
    done.lessons[0].completed = True

    summary = progress_engine.summarize_progress("user-1", [not_started, in_progress, done])

    assert summary.course_count == 3
    assert summary.total_time_spent == 3600
    assert summary.formatted_time_spent == "1h 0m"
    assert summary.total_lessons_completed == 3
    assert summary.total_lessons == 9
    assert summary.average_completion == 50
    assert [p.course_id for p in summary.in_progress] == ["course-2"]
    assert [p.course_id for p in summary.completed] == ["course-3"]
    assert [p.course_id for p in summary.not_started] == ["course-1"]


def test_summarize_progress_with_no_courses():
    summary = progress_engine.summarize_progress("nobody", [])
    assert summary.course_count == 0
    assert summary.average_completion == 0
    assert summary.formatted_time_spent == "0m"
