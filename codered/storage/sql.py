"""
SQLAlchemy storage backend (PostgreSQL in production, SQLite in tests).

Each call runs in its own session and commits, unless a transaction() block
is open on the current thread, in which case it joins that block's session
and the block commits or rolls back as a unit.
"""

import logging
import threading
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..database import init_database
from ..models import CodeRedEvent, Pack, UserLocation
from .base import EVENTS, LOCATIONS, PACKS, Row, Storage, _check_table

logger = logging.getLogger(__name__)

MODELS = {
    EVENTS: CodeRedEvent,
    PACKS: Pack,
    LOCATIONS: UserLocation,
}


def _to_dict(obj) -> Row:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class SqlStorage(Storage):
    name = "sql"

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._local = threading.local()
        if create_tables:
            init_database(engine)

    @contextmanager
    def _session(self):
        active = getattr(self._local, "session", None)
        if active is not None:
            yield active
            return

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self):
        if getattr(self._local, "session", None) is not None:
            yield self
            return

        with self._session() as session:
            self._local.session = session
            try:
                yield self
            finally:
                self._local.session = None

    def insert(self, table: str, values: Row) -> Row:
        _check_table(table)
        with self._session() as session:
            obj = MODELS[table](**values)
            session.add(obj)
            session.flush()
            return _to_dict(obj)

    def get(self, table: str, record_id: int) -> Optional[Row]:
        _check_table(table)
        with self._session() as session:
            obj = session.get(MODELS[table], record_id)
            return _to_dict(obj) if obj is not None else None

    def update(self, table: str, record_id: int, values: Row) -> Optional[Row]:
        _check_table(table)
        with self._session() as session:
            obj = session.get(MODELS[table], record_id)
            if obj is None:
                return None
            for column, value in values.items():
                setattr(obj, column, value)
            session.flush()
            return _to_dict(obj)

    def delete(self, table: str, record_id: int) -> bool:
        _check_table(table)
        with self._session() as session:
            obj = session.get(MODELS[table], record_id)
            if obj is None:
                return False
            session.delete(obj)
            session.flush()
            return True

    def delete_where(self, table: str, **criteria) -> int:
        _check_table(table)
        with self._session() as session:
            return session.query(MODELS[table]).filter_by(**criteria).delete(synchronize_session=False)

    def find(self, table: str, order_by: Optional[str] = None, descending: bool = False,
             **criteria) -> List[Row]:
        _check_table(table)
        model = MODELS[table]
        column = getattr(model, order_by or "id")
        with self._session() as session:
            query = session.query(model).filter_by(**criteria)
            query = query.order_by(column.desc() if descending else column.asc(), model.id.asc())
            return [_to_dict(obj) for obj in query.all()]

    def close(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()
