"""
Record storage backends.

Everything above this module talks to the RecordStore interface only. Two
implementations exist: a process-local dict and a SQLAlchemy table. The
backend is picked once at startup by create_store().
"""
import functools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from string_analyzer.config import Settings
from string_analyzer.errors import InternalError
from string_analyzer.database import create_db_engine, create_session_factory, init_db
from string_analyzer.models import StringAnalysis
from string_analyzer.schemas import StringProperties, StringRecord

logger = logging.getLogger(__name__)

Predicate = Callable[[StringRecord], bool]


class DuplicateRecordError(Exception):
    """Raised when a record with the same id is already stored"""

    def __init__(self, record_id: str):
        super().__init__(f"Record {record_id} already exists")
        self.record_id = record_id


class RecordStore(ABC):
    name = "abstract"

    @abstractmethod
    def insert(self, record: StringRecord) -> StringRecord:
        """Store a new record. Raises DuplicateRecordError if the id is taken."""

    @abstractmethod
    def find(self, predicate: Optional[Predicate] = None) -> List[StringRecord]:
        """All records, or those satisfying predicate, oldest first"""

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[StringRecord]:
        pass

    @abstractmethod
    def delete_by_id(self, record_id: str) -> bool:
        """Hard delete. Returns False when nothing was stored under the id."""

    @abstractmethod
    def count(self) -> int:
        pass


# ------------------------------------------------------------------------------
# IN-MEMORY BACKEND
# ------------------------------------------------------------------------------
class MemoryStore(RecordStore):
    name = "memory"

    def __init__(self):
        self._records: Dict[str, StringRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: StringRecord) -> StringRecord:
        with self._lock:
            if record.id in self._records:
                raise DuplicateRecordError(record.id)
            self._records[record.id] = record
        return record

    def find(self, predicate: Optional[Predicate] = None) -> List[StringRecord]:
        with self._lock:
            records = list(self._records.values())
        if predicate is None:
            return records
        return [record for record in records if predicate(record)]

    def find_by_id(self, record_id: str) -> Optional[StringRecord]:
        return self._records.get(record_id)

    def delete_by_id(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def count(self) -> int:
        return len(self._records)


# ------------------------------------------------------------------------------
# DATABASE BACKEND
# ------------------------------------------------------------------------------
def to_record(row: StringAnalysis) -> StringRecord:
    created_at = row.created_at
    # SQLite drops tzinfo on the way back
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    return StringRecord(
        id=row.id,
        value=row.value,
        properties=StringProperties(
            length=row.length,
            is_palindrome=row.is_palindrome,
            unique_characters=row.unique_characters,
            word_count=row.word_count,
            sha256_hash=row.sha256_hash,
            character_frequency_map=row.character_frequency_map,
        ),
        created_at=created_at,
    )


def to_row(record: StringRecord) -> StringAnalysis:
    props = record.properties
    return StringAnalysis(
        id=record.id,
        value=record.value,
        length=props.length,
        is_palindrome=props.is_palindrome,
        unique_characters=props.unique_characters,
        word_count=props.word_count,
        sha256_hash=props.sha256_hash,
        character_frequency_map=props.character_frequency_map,
        created_at=record.created_at,
    )


def storage_errors(func):
    """Report database failures as InternalError without leaking driver details"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError:
            logger.exception(f"Storage operation {func.__name__} failed")
            raise InternalError("Storage backend unavailable")

    return wrapper


class SQLStore(RecordStore):
    name = "database"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SQLStore":
        """Connect, create tables and return a store. Raises SQLAlchemyError on failure."""
        engine = create_db_engine(database_url)
        init_db(engine)
        return cls(create_session_factory(engine))

    @storage_errors
    def insert(self, record: StringRecord) -> StringRecord:
        with self.session_factory() as db:
            db.add(to_row(record))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateRecordError(record.id)
        return record

    @storage_errors
    def find(self, predicate: Optional[Predicate] = None) -> List[StringRecord]:
        with self.session_factory() as db:
            rows = db.query(StringAnalysis).order_by(StringAnalysis.created_at).all()
            records = [to_record(row) for row in rows]
        if predicate is None:
            return records
        return [record for record in records if predicate(record)]

    @storage_errors
    def find_by_id(self, record_id: str) -> Optional[StringRecord]:
        with self.session_factory() as db:
            row = db.get(StringAnalysis, record_id)
            return to_record(row) if row else None

    @storage_errors
    def delete_by_id(self, record_id: str) -> bool:
        with self.session_factory() as db:
            deleted = db.query(StringAnalysis).filter(StringAnalysis.id == record_id).delete()
            db.commit()
        return deleted > 0

    @storage_errors
    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(StringAnalysis).count()


# ------------------------------------------------------------------------------
# BACKEND SELECTION
# ------------------------------------------------------------------------------
def create_store(settings: Settings) -> RecordStore:
    """
    Pick the storage backend from settings.
    Falls back to memory when no database is configured or it cannot be reached.
    """
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage")
        return MemoryStore()

    if not settings.database_url:
        if settings.storage_backend == "database":
            logger.warning("STORAGE_BACKEND=database but DATABASE_URL is not set, using in-memory storage")
        else:
            logger.info("DATABASE_URL not set, using in-memory storage")
        return MemoryStore()

    try:
        store = SQLStore.from_url(settings.database_url)
    except SQLAlchemyError as e:
        logger.error(f"Database unavailable, falling back to in-memory storage: {e}")
        return MemoryStore()

    logger.info("Using database storage")
    return store
