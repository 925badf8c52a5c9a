"""
Storage backends. create_storage() picks one once at startup:
DATABASE_URL set -> SqlStorage, otherwise MemoryStorage.
"""

import logging

from ..config import Settings
from .base import EVENTS, LOCATIONS, PACKS, Storage
from .memory import MemoryStorage

logger = logging.getLogger(__name__)

__all__ = ["EVENTS", "LOCATIONS", "PACKS", "Storage", "MemoryStorage", "create_storage"]


def create_storage(settings: Settings) -> Storage:
    if not settings.database_url:
        logger.info("DATABASE_URL not set, using in-memory storage")
        return MemoryStorage()

    from ..database import create_database_engine
    from .sql import SqlStorage

    engine = create_database_engine(settings.database_url, echo=settings.db_echo)
    return SqlStorage(engine)
