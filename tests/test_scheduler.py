import asyncio

from app.core import scheduler as scheduler_module
from app.services.watch_session import WatchSessionTracker


def test_scheduler_disabled_in_test_environment(monkeypatch):
    monkeypatch.setenv("TESTING", "true")
    scheduler_module.start_scheduler()
    assert not scheduler_module.scheduler.running


def test_flush_job_pushes_due_sessions(monkeypatch, progress_service, enrolled, clock):
    tracker = WatchSessionTracker(flush_interval=30, clock=clock)
    monkeypatch.setattr(scheduler_module, "watch_session_tracker", tracker)
    monkeypatch.setattr(scheduler_module, "build_progress_service", lambda db: progress_service)

    tracker.start(progress_service, "user-1", "course-1", "l1")
    clock.advance(seconds=30)
    asyncio.run(scheduler_module.flush_watch_sessions())

    assert progress_service.get_by_user_and_course("user-1", "course-1").total_time_spent == 30


def test_close_watch_sessions_flushes_remainder(monkeypatch, progress_service, enrolled, clock):
    tracker = WatchSessionTracker(flush_interval=30, clock=clock)
    monkeypatch.setattr(scheduler_module, "watch_session_tracker", tracker)
    monkeypatch.setattr(scheduler_module, "build_progress_service", lambda db: progress_service)

    tracker.start(progress_service, "user-1", "course-1", "l1")
    clock.advance(seconds=7)
    scheduler_module.close_watch_sessions()

    assert len(tracker) == 0
    assert progress_service.get_by_user_and_course("user-1", "course-1").total_time_spent == 7
