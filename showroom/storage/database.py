"""Persistence gateway over the vehicles, membership and provider-link tables"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import create_engine, inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import RecordNotFound, StorageError
from ..realtime.feed import DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed
from .models import COLLECTIONS, Base

# Columns the gateway maintains itself
MANAGED_COLUMNS = {"id", "created_at", "updated_at"}


class Database:
    """Database management class.

    Every committed insert/update/delete is published on the change feed
    after the transaction commits; rolled back work publishes nothing.
    """

    def __init__(self, db_url: str = "sqlite:///data/db/showroom.db", feed: Optional[ChangeFeed] = None, echo: bool = False):
        self.db_url = db_url
        self.feed = feed or ChangeFeed()

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
                # One shared connection, or every thread would see its own empty database
                engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_engine(db_url, **engine_kwargs)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"could not open database {db_url}: {e}") from e

        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database initialized: {db_url}")

    @contextmanager
    def session(self):
        """Context manager for database sessions"""
        session = self.Session()
        changes: List[ChangeEvent] = session.info.setdefault("changes", [])
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise StorageError(str(e)) from e
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

        for event in changes:
            self.feed.publish(event)

    # ------------------------------------------------------------------
    # Generic collection access
    # ------------------------------------------------------------------

    def _model(self, collection: str):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise StorageError(f"unknown collection: {collection}")
        return model

    def _columns(self, model) -> set:
        return {column.key for column in sa_inspect(model).column_attrs}

    def _check_fields(self, model, fields: Dict[str, Any]):
        unknown = set(fields) - (self._columns(model) - MANAGED_COLUMNS)
        if unknown:
            raise StorageError(
                f"unknown fields for {model.__tablename__}: {', '.join(sorted(unknown))}"
            )

    def _to_record(self, obj) -> Dict[str, Any]:
        record = {}
        for key in self._columns(type(obj)):
            value = getattr(obj, key)
            if isinstance(value, datetime):
                value = value.isoformat()
            record[key] = value
        return record

    def _record_change(self, session: Session, collection: str, event: str, record_id: Optional[int]):
        session.info["changes"].append(ChangeEvent(collection, event, record_id))

    def list(self, collection: str, order_by: str = "created_at", direction: str = "desc") -> List[Dict[str, Any]]:
        """List every record of a collection in the requested order.

        Args:
            collection: Collection name
            order_by: Column to sort by
            direction: ``asc`` or ``desc``

        Returns:
            List of records as dictionaries
        """
        model = self._model(collection)
        if order_by not in self._columns(model):
            raise StorageError(f"cannot order {collection} by unknown column {order_by}")
        if direction not in ("asc", "desc"):
            raise StorageError(f"invalid sort direction: {direction}")

        column = getattr(model, order_by)
        tiebreak = model.id
        if direction == "desc":
            column, tiebreak = column.desc(), tiebreak.desc()

        with self.session() as session:
            rows = session.query(model).order_by(column, tiebreak).all()
            return [self._to_record(row) for row in rows]

    def get(self, collection: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Get a single record by ID"""
        model = self._model(collection)
        with self.session() as session:
            obj = session.get(model, record_id)
            return self._to_record(obj) if obj else None

    def insert(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return it with its generated ID and timestamps"""
        model = self._model(collection)
        self._check_fields(model, fields)

        with self.session() as session:
            obj = model(**fields)
            session.add(obj)
            session.flush()  # Get the ID
            self._record_change(session, collection, INSERT, obj.id)
            logger.debug(f"Inserted {obj!r}")
            return self._to_record(obj)

    def update(self, collection: str, record_id: int, fields: Dict[str, Any]):
        """Update fields of an existing record"""
        model = self._model(collection)
        self._check_fields(model, fields)

        with self.session() as session:
            obj = session.get(model, record_id)
            if obj is None:
                raise RecordNotFound(collection, record_id)
            for key, value in fields.items():
                setattr(obj, key, value)
            obj.updated_at = datetime.utcnow()
            self._record_change(session, collection, UPDATE, record_id)
            logger.debug(f"Updated {obj!r}")

    def delete(self, collection: str, record_id: int):
        """Delete a record"""
        model = self._model(collection)

        with self.session() as session:
            obj = session.get(model, record_id)
            if obj is None:
                raise RecordNotFound(collection, record_id)
            session.delete(obj)
            self._record_change(session, collection, DELETE, record_id)
            logger.debug(f"Deleted {collection} record {record_id}")

    def count(self, collection: str) -> int:
        """Count records in a collection"""
        model = self._model(collection)
        with self.session() as session:
            return session.query(model).count()
