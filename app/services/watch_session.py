import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from app.core.config import settings
from app.schemas.course_progress import CourseProgress, WatchSessionRead
from app.services.course_progress import CourseProgressService
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)


@dataclass
class WatchSession:
    user_id: str
    course_id: str
    lesson_id: str
    started_at: datetime
    last_flushed_at: datetime
    current_position: int = 0

    def elapsed_seconds(self, now: datetime) -> int:
        return max(0, math.floor((now - self.last_flushed_at).total_seconds()))

    def to_schema(self) -> WatchSessionRead:
        return WatchSessionRead(
            user_id=self.user_id,
            course_id=self.course_id,
            lesson_id=self.lesson_id,
            started_at=self.started_at,
            last_flushed_at=self.last_flushed_at,
            current_position=self.current_position,
        )


class WatchSessionTracker:
    """Samples time spent on the lesson a user is currently viewing.

    One open session per (user, course). Accumulated time is pushed into the
    progress store by ``flush_due`` once it reaches ``flush_interval`` seconds,
    and whatever is left is pushed when the session stops.
    """

    def __init__(self, flush_interval: int = settings.WATCH_FLUSH_INTERVAL_SECONDS, clock: Callable[[], datetime] = utc_now):
        self.flush_interval = flush_interval
        self.clock = clock
        self._sessions: Dict[Tuple[str, str], WatchSession] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def get(self, user_id: str, course_id: str) -> Optional[WatchSession]:
        return self._sessions.get((user_id, course_id))

    def _flush(self, service: CourseProgressService, session: WatchSession, seconds: int) -> Optional[CourseProgress]:
        session.last_flushed_at += timedelta(seconds=seconds)
        try:
            return service.update_watch_progress(
                session.user_id, session.course_id, session.lesson_id, seconds, session.current_position
            )
        except Exception as e:
            # Flushes are not retried; the sampled time is dropped
            logger.error(
                f"Failed to flush {seconds}s of watch time for user {session.user_id} "
                f"on lesson {session.lesson_id}: {e}",
                exc_info=True,
            )
            return None

    def start(self, service: CourseProgressService, user_id: str, course_id: str, lesson_id: str) -> WatchSession:
        now = self.clock()
        with self._lock:
            previous = self._sessions.get((user_id, course_id))
            if previous and previous.lesson_id == lesson_id:
                return previous
            if previous:
                self._stop_locked(service, previous, now)

            session = WatchSession(
                user_id=user_id,
                course_id=course_id,
                lesson_id=lesson_id,
                started_at=now,
                last_flushed_at=now,
            )
            self._sessions[(user_id, course_id)] = session
        logger.debug(f"Watch session started for user {user_id} on lesson {lesson_id}")
        return session

    def heartbeat(self, user_id: str, course_id: str, lesson_id: str, current_position: int) -> Optional[WatchSession]:
        with self._lock:
            session = self._sessions.get((user_id, course_id))
            if not session or session.lesson_id != lesson_id:
                return None
            session.current_position = current_position
        return session

    def _stop_locked(self, service: CourseProgressService, session: WatchSession, now: datetime) -> Tuple[int, Optional[CourseProgress]]:
        self._sessions.pop((session.user_id, session.course_id), None)
        remaining = session.elapsed_seconds(now)
        progress = None
        if remaining > 0:
            progress = self._flush(service, session, remaining)
        logger.debug(f"Watch session stopped for user {session.user_id} on lesson {session.lesson_id} ({remaining}s flushed)")
        return remaining, progress

    def stop(self, service: CourseProgressService, user_id: str, course_id: str, lesson_id: str) -> Optional[Tuple[WatchSession, int, Optional[CourseProgress]]]:
        now = self.clock()
        with self._lock:
            session = self._sessions.get((user_id, course_id))
            if not session or session.lesson_id != lesson_id:
                return None
            flushed, progress = self._stop_locked(service, session, now)
        return session, flushed, progress

    def stop_all(self, service: CourseProgressService) -> int:
        now = self.clock()
        with self._lock:
            sessions = list(self._sessions.values())
            for session in sessions:
                self._stop_locked(service, session, now)
        return len(sessions)

    def flush_due(self, service: CourseProgressService) -> List[WatchSession]:
        now = self.clock()
        flushed = []
        with self._lock:
            for session in list(self._sessions.values()):
                elapsed = session.elapsed_seconds(now)
                if elapsed >= self.flush_interval:
                    self._flush(service, session, elapsed)
                    flushed.append(session)
        return flushed


watch_session_tracker = WatchSessionTracker()
