# backend/voicepost/storage/relational.py
"""
Durable ResultStore backed by SQL tables.

Queries are built with SQLAlchemy Core against the tables in
voicepost.db.models and executed through the async `databases` connection
pool, so the same code runs on PostgreSQL in production and SQLite in tests.

Uniqueness of username and email is checked before the insert; the UNIQUE
constraints on the users table catch any concurrent signup that slips past
the check, and are reported as the same duplicate error.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Type, TypeVar

import databases
from pydantic import BaseModel
from sqlalchemy import Table, and_
from sqlalchemy.schema import CreateTable

from voicepost.core.errors import EmailTakenError, PersistenceError, UsernameTakenError
from voicepost.core.security import hash_password
from voicepost.db import models as tables
from voicepost.models import Artifact, SavedText, SavedTextCreate, TranslationCreate, User
from voicepost.storage.base import ResultStore, new_id

logger = logging.getLogger(__name__)

Record = TypeVar("Record", bound=BaseModel)


def _to_model(model: Type[Record], table: Table, row) -> Optional[Record]:
    """Convert a database row into a pydantic record (None stays None)."""
    if row is None:
        return None
    values = {column.name: row[column.name] for column in table.columns}
    # SQLite drops tzinfo; timestamps are always written in UTC
    created_at = values.get("created_at")
    if isinstance(created_at, datetime) and created_at.tzinfo is None:
        values["created_at"] = created_at.replace(tzinfo=timezone.utc)
    return model(**values)


class RelationalStore(ResultStore):
    """Store that delegates every operation to persistent tables."""

    def __init__(self, database: databases.Database, create_tables: bool = True, **kwargs):
        """
        Args:
            database: Connection pool created by voicepost.db.database.create_database
            create_tables: Issue CREATE TABLE IF NOT EXISTS when connecting
        """
        super().__init__(**kwargs)
        self.database = database
        self._create_tables = create_tables

    async def connect(self) -> None:
        if not self.database.is_connected:
            await self.database.connect()
        if self._create_tables:
            await self.create_schema()

    async def disconnect(self) -> None:
        if self.database.is_connected:
            await self.database.disconnect()

    async def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        for table in tables.metadata.sorted_tables:
            await self.database.execute(CreateTable(table, if_not_exists=True))
        logger.info("Relational schema ready (%s)", ", ".join(t.name for t in tables.metadata.sorted_tables))

    # Users
    async def get_user(self, user_id: str) -> Optional[User]:
        query = tables.User.select().where(tables.User.c.id == user_id)
        return _to_model(User, tables.User, await self.database.fetch_one(query))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        query = tables.User.select().where(tables.User.c.username == username)
        return _to_model(User, tables.User, await self.database.fetch_one(query))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        query = tables.User.select().where(tables.User.c.email == email)
        return _to_model(User, tables.User, await self.database.fetch_one(query))

    async def _raise_if_taken(self, username: str, email: Optional[str]) -> None:
        if await self.get_user_by_username(username):
            raise UsernameTakenError(username)
        if email and await self.get_user_by_email(email):
            raise EmailTakenError(email)

    async def create_user(self, username: str, password: str, email: Optional[str] = None) -> User:
        await self._raise_if_taken(username, email)

        user = User(
            id=new_id(),
            username=username,
            email=email or None,
            password_hash=await hash_password(password, self._password_rounds),
            created_at=self._clock(),
        )
        try:
            await self.database.execute(tables.User.insert().values(**user.model_dump()))
        except Exception as exc:
            # A concurrent signup won the race for the unique constraint
            await self._raise_if_taken(username, email)
            raise PersistenceError(f"Failed to create user: {exc}") from exc

        logger.info("Created user %s", user.id)
        return user

    # Translation artifacts
    async def create_translation(self, fields: TranslationCreate) -> Artifact:
        artifact = Artifact(id=new_id(), created_at=self._clock(), **fields.model_dump())
        await self.database.execute(tables.Translation.insert().values(**artifact.model_dump()))
        return artifact

    async def get_translation(self, translation_id: str) -> Optional[Artifact]:
        query = tables.Translation.select().where(tables.Translation.c.id == translation_id)
        return _to_model(Artifact, tables.Translation, await self.database.fetch_one(query))

    async def get_recent_translations(self, limit: int = 10) -> List[Artifact]:
        query = (
            tables.Translation.select()
            .order_by(tables.Translation.c.created_at.desc())
            .limit(max(limit, 0))
        )
        rows = await self.database.fetch_all(query)
        return [_to_model(Artifact, tables.Translation, row) for row in rows]

    # Saved texts
    async def create_saved_text(self, fields: SavedTextCreate) -> SavedText:
        saved = SavedText(id=new_id(), created_at=self._clock(), **fields.model_dump())
        await self.database.execute(tables.SavedText.insert().values(**saved.model_dump()))
        return saved

    async def get_saved_texts_by_user(self, user_id: str, type_filter: Optional[str] = None) -> List[SavedText]:
        condition = tables.SavedText.c.user_id == user_id
        if type_filter:
            condition = and_(condition, tables.SavedText.c.type == type_filter)
        query = (
            tables.SavedText.select()
            .where(condition)
            .order_by(tables.SavedText.c.created_at.desc())
        )
        rows = await self.database.fetch_all(query)
        return [_to_model(SavedText, tables.SavedText, row) for row in rows]

    def _owned(self, saved_text_id: str, user_id: str):
        return and_(
            tables.SavedText.c.id == saved_text_id,
            tables.SavedText.c.user_id == user_id,
        )

    async def get_saved_text(self, saved_text_id: str, user_id: str) -> Optional[SavedText]:
        query = tables.SavedText.select().where(self._owned(saved_text_id, user_id))
        return _to_model(SavedText, tables.SavedText, await self.database.fetch_one(query))

    async def delete_saved_text(self, saved_text_id: str, user_id: str) -> bool:
        async with self.database.transaction():
            existing = await self.database.fetch_one(
                tables.SavedText.select().where(self._owned(saved_text_id, user_id))
            )
            if existing is None:
                return False
            await self.database.execute(
                tables.SavedText.delete().where(self._owned(saved_text_id, user_id))
            )
        return True
