# backend/voicepost/db/database.py

import databases


def create_database(database_url: str) -> databases.Database:
    """Async connection pool for the relational store (postgresql:// or sqlite:///)."""
    return databases.Database(database_url)
