import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import PROGRESS_COLLECTION_KEY
from app.core.exceptions import DuplicateProgressError, ProgressStoreError
from app.crud.base import ProgressRepository, dump_progress
from app.models.course_progress import CourseProgressRecord
from app.schemas.course_progress import CourseProgress

logger = logging.getLogger(__name__)

ProgressKey = Tuple[str, str]


@dataclass
class _Collection:
    document: Dict[str, Any]
    # Parsed records, or the raw value of a quarantined one at the same position
    entries: List[Union[CourseProgress, Any]] = field(default_factory=list)
    index: Dict[ProgressKey, int] = field(default_factory=dict)

    def records(self) -> List[CourseProgress]:
        return [entry for entry in self.entries if isinstance(entry, CourseProgress)]


class JSONProgressRepository(ProgressRepository):
    """Local key-value store: one JSON document holding the whole collection.

    Every mutation reads the full collection, changes it in memory and writes
    it back, so the last writer wins for the whole document.
    """

    def __init__(self, path: Union[str, Path], collection_key: str = PROGRESS_COLLECTION_KEY):
        self.path = Path(path)
        self.collection_key = collection_key
        self._lock = threading.RLock()

    def _read_document(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise ProgressStoreError(f"Could not read progress store {self.path}: {e}") from e

        if not raw.strip():
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Progress store {self.path} is not valid JSON, treating it as empty")
            return {}

        if not isinstance(document, dict):
            logger.warning(f"Progress store {self.path} is not a JSON object, treating it as empty")
            return {}
        return document

    def _load(self) -> _Collection:
        document = self._read_document()
        raw_records = document.get(self.collection_key, [])
        if not isinstance(raw_records, list):
            logger.warning(f"'{self.collection_key}' in {self.path} is not a list, treating it as empty")
            raw_records = []

        collection = _Collection(document=document)
        for position, raw in enumerate(raw_records):
            try:
                record = CourseProgress.model_validate(raw)
            except ValidationError as e:
                logger.warning(
                    f"Quarantined malformed progress record #{position} in {self.path} "
                    f"({e.error_count()} validation errors)"
                )
                collection.entries.append(raw)
                continue
            collection.entries.append(record)
            collection.index.setdefault((record.user_id, record.course_id), position)
        return collection

    def _write(self, collection: _Collection) -> None:
        collection.document[self.collection_key] = [
            dump_progress(entry) if isinstance(entry, CourseProgress) else entry
            for entry in collection.entries
        ]
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Unique per writer so concurrent processes never share a temp file
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = tmp.name
                json.dump(collection.document, tmp, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ProgressStoreError(f"Could not write progress store {self.path}: {e}") from e

    def get(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        collection = self._load()
        position = collection.index.get((user_id, course_id))
        if position is None:
            return None
        return collection.entries[position]

    def get_by_user(self, user_id: str) -> List[CourseProgress]:
        return [record for record in self._load().records() if record.user_id == user_id]

    def get_all(self) -> List[CourseProgress]:
        return self._load().records()

    def add(self, progress: CourseProgress) -> CourseProgress:
        with self._lock:
            collection = self._load()
            if (progress.user_id, progress.course_id) in collection.index:
                raise DuplicateProgressError(progress.user_id, progress.course_id)
            collection.entries.append(progress)
            self._write(collection)
        return progress

    def upsert(self, progress: CourseProgress) -> CourseProgress:
        with self._lock:
            collection = self._load()
            position = collection.index.get((progress.user_id, progress.course_id))
            if position is None:
                collection.entries.append(progress)
            else:
                collection.entries[position] = progress
            self._write(collection)
        return progress


class SQLProgressRepository(ProgressRepository):
    """Hosted database store: one row per (user_id, course_id), replaced atomically."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(CourseProgressRecord)

    def _get_row(self, user_id: str, course_id: str) -> Optional[CourseProgressRecord]:
        return (
            self._query()
            .filter(CourseProgressRecord.user_id == user_id)
            .filter(CourseProgressRecord.course_id == course_id)
            .first()
        )

    def _to_progress(self, row: CourseProgressRecord) -> Optional[CourseProgress]:
        try:
            return CourseProgress.model_validate(row.payload)
        except ValidationError as e:
            logger.warning(
                f"Quarantined malformed progress row id={row.id} "
                f"({e.error_count()} validation errors)"
            )
            return None

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise ProgressStoreError(f"Could not write progress record: {e}") from e

    def get(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        row = self._get_row(user_id, course_id)
        if not row:
            return None
        return self._to_progress(row)

    def get_by_user(self, user_id: str) -> List[CourseProgress]:
        rows = (
            self._query()
            .filter(CourseProgressRecord.user_id == user_id)
            .order_by(CourseProgressRecord.id)
            .all()
        )
        return [progress for progress in map(self._to_progress, rows) if progress is not None]

    def get_all(self) -> List[CourseProgress]:
        rows = self._query().order_by(CourseProgressRecord.id).all()
        return [progress for progress in map(self._to_progress, rows) if progress is not None]

    def add(self, progress: CourseProgress) -> CourseProgress:
        row = CourseProgressRecord(
            user_id=progress.user_id,
            course_id=progress.course_id,
            payload=dump_progress(progress),
        )
        self.db.add(row)
        try:
            self._commit()
        except IntegrityError:
            raise DuplicateProgressError(progress.user_id, progress.course_id) from None
        return progress

    def upsert(self, progress: CourseProgress) -> CourseProgress:
        row = self._get_row(progress.user_id, progress.course_id)
        if row is None:
            try:
                return self.add(progress)
            except DuplicateProgressError:
                # Inserted concurrently; fall through to replacing it
                row = self._get_row(progress.user_id, progress.course_id)

        row.payload = dump_progress(progress)
        self._commit()
        return progress
