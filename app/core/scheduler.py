import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.watch_session import watch_session_tracker
from app.utils.deps import build_progress_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def flush_watch_sessions():
    db = SessionLocal()
    try:
        flushed = watch_session_tracker.flush_due(build_progress_service(db))
        if flushed:
            logger.info(f"Flushed watch time for {len(flushed)} open sessions")
    except Exception as e:
        logger.error(f"Error flushing watch sessions: {e}")
    finally:
        db.close()


def close_watch_sessions():
    db = SessionLocal()
    try:
        closed = watch_session_tracker.stop_all(build_progress_service(db))
        if closed:
            logger.info(f"Closed {closed} open watch sessions on shutdown")
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            flush_watch_sessions,
            'interval',
            seconds=settings.WATCH_FLUSH_INTERVAL_SECONDS,
            id='flush_watch_sessions',
            name='Flush Accumulated Watch Time',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        scheduler.start()
        logger.info(f"Scheduler started, flushing watch sessions every {settings.WATCH_FLUSH_INTERVAL_SECONDS}s")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
    close_watch_sessions()
