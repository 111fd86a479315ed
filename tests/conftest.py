import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("TESTING", "true")

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from app.core.database import Base
from app.crud.course_progress import JSONProgressRepository, SQLProgressRepository
from app.models import course_progress as course_progress_model  # noqa: F401
from app.services.course_progress import CourseProgressService
from app.services.watch_session import WatchSessionTracker
from app.utils import deps as deps_utils
import main


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="session")
def database_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "course_progress.json"


@pytest.fixture
def json_repository(store_path):
    return JSONProgressRepository(store_path)


@pytest.fixture
def sql_repository(db_session):
    return SQLProgressRepository(db_session)


@pytest.fixture(params=["json", "database"])
def repository(request):
    """Runs a test once against each storage backend."""
    if request.param == "json":
        return request.getfixturevalue("json_repository")
    return request.getfixturevalue("sql_repository")


@pytest.fixture
def progress_service(repository, clock):
    return CourseProgressService(repository, clock=clock)


@pytest.fixture
def tracker(clock):
    return WatchSessionTracker(flush_interval=30, clock=clock)


@pytest.fixture
def enrolled(progress_service):
    """A fresh enrollment in a four-lesson course."""
    return progress_service.initialize("user-1", "course-1", ["l1", "l2", "l3", "l4"])


@pytest.fixture(scope="function")
def client(json_repository, clock, tracker):
    service = CourseProgressService(json_repository, clock=clock)
    main.app.dependency_overrides[deps_utils.get_progress_service] = lambda: service
    main.app.dependency_overrides[deps_utils.get_watch_session_tracker] = lambda: tracker
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
