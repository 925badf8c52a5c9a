"""
In-memory storage backend.

Used when DATABASE_URL is not set, and by the test suite. One re-entrant
lock serialises every call; a transaction holds it for the whole block and
restores a snapshot if the block raises.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Dict, List, Optional

from .base import Row, Storage, TABLES, _check_table

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    name = "memory"

    def __init__(self):
        self._tables: Dict[str, Dict[int, Row]] = {table: {} for table in TABLES}
        self._next_ids: Dict[str, int] = {table: 1 for table in TABLES}
        self._lock = threading.RLock()

    def insert(self, table: str, values: Row) -> Row:
        _check_table(table)
        with self._lock:
            record_id = self._next_ids[table]
            self._next_ids[table] += 1
            row = copy.deepcopy(values)
            row["id"] = record_id
            self._tables[table][record_id] = row
            return copy.deepcopy(row)

    def get(self, table: str, record_id: int) -> Optional[Row]:
        _check_table(table)
        with self._lock:
            row = self._tables[table].get(record_id)
            return copy.deepcopy(row) if row is not None else None

    def update(self, table: str, record_id: int, values: Row) -> Optional[Row]:
        _check_table(table)
        with self._lock:
            row = self._tables[table].get(record_id)
            if row is None:
                return None
            updated = {**row, **copy.deepcopy(values), "id": record_id}
            self._tables[table][record_id] = updated
            return copy.deepcopy(updated)

    def delete(self, table: str, record_id: int) -> bool:
        _check_table(table)
        with self._lock:
            return self._tables[table].pop(record_id, None) is not None

    def delete_where(self, table: str, **criteria) -> int:
        _check_table(table)
        with self._lock:
            doomed = [rid for rid, row in self._tables[table].items() if _matches(row, criteria)]
            for rid in doomed:
                del self._tables[table][rid]
            return len(doomed)

    def find(self, table: str, order_by: Optional[str] = None, descending: bool = False,
             **criteria) -> List[Row]:
        _check_table(table)
        with self._lock:
            rows = [row for row in self._tables[table].values() if _matches(row, criteria)]
            key = order_by or "id"
            # Ties keep id order in both directions
            rows.sort(key=lambda r: r["id"])
            rows.sort(key=lambda r: r.get(key), reverse=descending)
            return copy.deepcopy(rows)

    @contextmanager
    def transaction(self):
        with self._lock:
            snapshot = (copy.deepcopy(self._tables), dict(self._next_ids))
            try:
                yield self
            except Exception:
                self._tables, self._next_ids = snapshot
                logger.debug("Memory transaction rolled back")
                raise


def _matches(row: Row, criteria: dict) -> bool:
    return all(row.get(column) == value for column, value in criteria.items())
