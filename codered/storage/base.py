"""
Storage contract shared by the in-memory and SQLAlchemy backends.

Rows go in and come out as plain dicts keyed by column name. Every dict
returned is a copy; mutating it never touches stored state. Queries are
equality filters on columns, e.g. find(PACKS, code_red_event_id=3).

transaction() groups several calls into one all-or-nothing unit. Calls
made outside a transaction are each committed on their own.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

EVENTS = "code_red_events"
PACKS = "packs"
LOCATIONS = "user_locations"

TABLES = (EVENTS, PACKS, LOCATIONS)

Row = Dict[str, Any]


class Storage(ABC):
    """Record store used by the registries"""

    name = "abstract"

    @abstractmethod
    def insert(self, table: str, values: Row) -> Row:
        """Insert a row, assigning a fresh integer id. Returns the stored row."""

    @abstractmethod
    def get(self, table: str, record_id: int) -> Optional[Row]:
        """Row by id, or None"""

    @abstractmethod
    def update(self, table: str, record_id: int, values: Row) -> Optional[Row]:
        """Overwrite the given columns. Returns the updated row, or None if missing."""

    @abstractmethod
    def delete(self, table: str, record_id: int) -> bool:
        """Remove a row. Returns False if it did not exist."""

    @abstractmethod
    def delete_where(self, table: str, **criteria) -> int:
        """Remove every row matching criteria. Returns the number removed."""

    @abstractmethod
    def find(self, table: str, order_by: Optional[str] = None, descending: bool = False,
             **criteria) -> List[Row]:
        """Rows matching all criteria, ordered by order_by (default: id)"""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator["Storage"]:
        """All calls inside the block commit together or not at all"""

    def find_one(self, table: str, **criteria) -> Optional[Row]:
        rows = self.find(table, **criteria)
        return rows[0] if rows else None

    def close(self) -> None:
        pass


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise KeyError(f"Unknown table: {table}")
