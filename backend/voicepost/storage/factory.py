# backend/voicepost/storage/factory.py

import logging

from voicepost.core.config import Settings
from voicepost.db.database import create_database
from voicepost.storage.base import ResultStore
from voicepost.storage.memory import MemoryStore
from voicepost.storage.relational import RelationalStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> ResultStore:
    """
    Build the ResultStore named by settings.storage_backend.

    Called once at startup; the rest of the app only sees the ResultStore
    interface.
    """
    if settings.storage_backend == "relational":
        logger.info("Using relational store")
        return RelationalStore(
            create_database(settings.database_url),
            password_rounds=settings.bcrypt_rounds,
        )

    logger.warning("Using in-memory store: data is lost on restart and not shared between instances")
    return MemoryStore(password_rounds=settings.bcrypt_rounds)
