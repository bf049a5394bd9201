# backend/voicepost/storage/base.py
"""
ResultStore interface

The single persistence boundary of the core: user accounts, transient
translation artifacts and explicitly saved texts. Exactly two implementations
exist, chosen once at startup by create_store():

- MemoryStore: in-process, lost on restart, single instance only
- RelationalStore: durable SQL tables, consistent across processes

Ownership-scoped reads and deletes (get_saved_text, delete_saved_text) treat
a row owned by someone else exactly like a missing row.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional

from voicepost.core.security import DEFAULT_ROUNDS, verify_password
from voicepost.models import Artifact, SavedText, SavedTextCreate, TranslationCreate, User

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ResultStore(ABC):
    """Async storage capability set shared by every backend."""

    def __init__(self, clock: Clock = utcnow, password_rounds: int = DEFAULT_ROUNDS):
        """
        Args:
            clock: Source of created_at timestamps
            password_rounds: bcrypt cost factor used by create_user
        """
        self._clock = clock
        self._password_rounds = password_rounds

    # Users
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create_user(self, username: str, password: str, email: Optional[str] = None) -> User:
        """
        Hash the password and store a new user.

        Raises:
            UsernameTakenError / EmailTakenError: before anything is written
        """

    async def validate_password(self, user: User, password: str) -> bool:
        """Check a login password against the user's stored hash."""
        return await verify_password(password, user.password_hash)

    # Translation artifacts
    @abstractmethod
    async def create_translation(self, fields: TranslationCreate) -> Artifact:
        ...

    @abstractmethod
    async def get_translation(self, translation_id: str) -> Optional[Artifact]:
        ...

    @abstractmethod
    async def get_recent_translations(self, limit: int = 10) -> List[Artifact]:
        """Artifacts ordered by created_at descending, at most ``limit`` of them."""

    # Saved texts
    @abstractmethod
    async def create_saved_text(self, fields: SavedTextCreate) -> SavedText:
        ...

    @abstractmethod
    async def get_saved_texts_by_user(self, user_id: str, type_filter: Optional[str] = None) -> List[SavedText]:
        """The user's saved texts, newest first, optionally of one type only."""

    @abstractmethod
    async def get_saved_text(self, saved_text_id: str, user_id: str) -> Optional[SavedText]:
        """Return the row only if it exists and belongs to ``user_id``."""

    @abstractmethod
    async def delete_saved_text(self, saved_text_id: str, user_id: str) -> bool:
        """Delete the row if it belongs to ``user_id``; False otherwise."""

    # Lifecycle, no-ops for the memory backend
    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass
