"""
Intake Repository - Key-value persistence for intake records.

Records are JSON documents keyed by patientId. Two implementations share the
IntakeRepository interface: an in-memory store used by tests and local runs,
and a SQLAlchemy store with one table whose name comes from configuration.
"""
from abc import ABC, abstractmethod
from contextlib import nullcontext
from copy import deepcopy
from typing import Any, Dict, List, Optional
import logging
import threading

from sqlalchemy import Column, JSON, MetaData, String, Table, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..database import create_session_factory

# Set up logging
logger = logging.getLogger(__name__)

Item = Dict[str, Any]

# Dialects with INSERT ... ON CONFLICT DO UPDATE
NATIVE_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class StorageError(Exception):
    """Raised when the storage backend fails to read or write."""


class IntakeRepository(ABC):
    """
    Key-value store for intake records.

    upsert replaces the whole item, so retrying an identical write is
    harmless. update merges fields into the item and creates it when absent.
    """

    def initialize(self) -> None:
        """Prepare the backing store (create tables, ...)."""

    @abstractmethod
    def upsert(self, key: str, item: Item) -> Item:
        """Store item under key, replacing any previous value."""

    @abstractmethod
    def get(self, key: str) -> Optional[Item]:
        """Return the item stored under key, or None."""

    @abstractmethod
    def update(self, key: str, fields: Item) -> Item:
        """Merge fields into the item under key, creating it when missing."""

    @abstractmethod
    def scan(self) -> List[Item]:
        """Return every item ordered by createdAt (items without one first)."""


class InMemoryIntakeRepository(IntakeRepository):
    """Dict-backed repository. Items are copied in and out."""

    def __init__(self):
        self._items: Dict[str, Item] = {}

    def upsert(self, key: str, item: Item) -> Item:
        stored = deepcopy(item)
        stored["patientId"] = key
        self._items[key] = stored
        logger.info(f"Stored intake record {key} in memory")
        return deepcopy(stored)

    def get(self, key: str) -> Optional[Item]:
        item = self._items.get(key)
        return deepcopy(item) if item is not None else None

    def update(self, key: str, fields: Item) -> Item:
        stored = self._items.get(key)
        if stored is None:
            logger.info(f"Creating intake record {key} from update")
            stored = {"patientId": key}
            self._items[key] = stored
        stored.update(deepcopy(fields))
        return deepcopy(stored)

    def scan(self) -> List[Item]:
        items = [deepcopy(item) for item in self._items.values()]
        return sorted(items, key=lambda item: item.get("createdAt") or "")

    def __len__(self) -> int:
        return len(self._items)


class SQLAlchemyIntakeRepository(IntakeRepository):
    """
    SQL-backed repository.

    Table layout:
    - patient_id: Primary key
    - created_at: ISO timestamp copied from the document, used for ordering
    - updated_at: ISO timestamp of the last merge
    - document: Full JSON record

    Writes are single-statement upserts (INSERT ... ON CONFLICT DO UPDATE on
    SQLite and PostgreSQL, insert-then-update elsewhere). update reads and
    writes inside one transaction with the row locked where the dialect has
    row locks; SQLite has none, so writes through one repository are
    serialized in-process instead.
    """

    def __init__(self, engine: Engine, table_name: str = "patient_intake"):
        self.engine = engine
        self.metadata = MetaData()
        self.table = Table(
            table_name,
            self.metadata,
            Column("patient_id", String, primary_key=True),
            Column("created_at", String, nullable=True, index=True),
            Column("updated_at", String, nullable=True),
            Column("document", JSON, nullable=False),
        )
        self.SessionLocal: sessionmaker = create_session_factory(engine)
        self._native_insert = NATIVE_UPSERT_INSERTS.get(engine.dialect.name)
        self._write_lock = threading.Lock() if engine.dialect.name == "sqlite" else nullcontext()

    def initialize(self) -> None:
        self.metadata.create_all(bind=self.engine)
        logger.info(f"Intake table '{self.table.name}' ready")

    def _save(self, db: Session, key: str, document: Item) -> None:
        values = {
            "created_at": document.get("createdAt"),
            "updated_at": document.get("updatedAt"),
            "document": document,
        }
        if self._native_insert is not None:
            stmt = self._native_insert(self.table).values(patient_id=key, **values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[self.table.c.patient_id],
                set_={name: stmt.excluded[name] for name in values}
            )
            db.execute(stmt)
            return

        try:
            with db.begin_nested():
                db.execute(self.table.insert().values(patient_id=key, **values))
        except IntegrityError:
            db.execute(self.table.update().where(self.table.c.patient_id == key).values(**values))

    def upsert(self, key: str, item: Item) -> Item:
        document = dict(item)
        document["patientId"] = key
        with self._write_lock, self.SessionLocal() as db:
            try:
                self._save(db, key, document)
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error(f"Error writing intake record {key}: {str(e)}")
                raise StorageError(f"Failed to write intake record {key}") from e
        return document

    def get(self, key: str) -> Optional[Item]:
        with self.SessionLocal() as db:
            row = db.execute(
                select(self.table.c.document).where(self.table.c.patient_id == key)
            ).first()
        return dict(row.document) if row else None

    def update(self, key: str, fields: Item) -> Item:
        with self._write_lock, self.SessionLocal() as db:
            try:
                row = db.execute(
                    select(self.table.c.document)
                    .where(self.table.c.patient_id == key)
                    .with_for_update()
                ).first()
                document = dict(row.document) if row else {"patientId": key}
                document.update(fields)
                self._save(db, key, document)
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error(f"Error merging into intake record {key}: {str(e)}")
                raise StorageError(f"Failed to update intake record {key}") from e
        return document

    def scan(self) -> List[Item]:
        with self.SessionLocal() as db:
            rows = db.execute(
                select(self.table.c.document).order_by(
                    self.table.c.created_at.asc().nulls_first(),
                    self.table.c.patient_id.asc()
                )
            ).all()
        return [dict(row.document) for row in rows]
