# backend/voicepost/storage/memory.py
"""Ephemeral ResultStore kept in process memory."""

import asyncio
import logging
from typing import Dict, List, Optional

from voicepost.core.errors import EmailTakenError, UsernameTakenError
from voicepost.core.security import hash_password
from voicepost.models import Artifact, SavedText, SavedTextCreate, TranslationCreate, User
from voicepost.storage.base import ResultStore, new_id

logger = logging.getLogger(__name__)


class MemoryStore(ResultStore):
    """
    Dict-backed store. Insertion order is retained, nothing survives a restart,
    and other processes never see the data, so it only suits single-instance,
    non-durable deployments.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._users: Dict[str, User] = {}
        self._translations: Dict[str, Artifact] = {}
        self._saved_texts: Dict[str, SavedText] = {}
        # Serializes the uniqueness check with the insert across the hashing await
        self._user_lock = asyncio.Lock()

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return next((u for u in self._users.values() if u.email == email), None)

    async def create_user(self, username: str, password: str, email: Optional[str] = None) -> User:
        async with self._user_lock:
            if await self.get_user_by_username(username):
                raise UsernameTakenError(username)
            if email and await self.get_user_by_email(email):
                raise EmailTakenError(email)

            user = User(
                id=new_id(),
                username=username,
                email=email or None,
                password_hash=await hash_password(password, self._password_rounds),
                created_at=self._clock(),
            )
            self._users[user.id] = user

        logger.info("Created user %s", user.id)
        return user

    async def create_translation(self, fields: TranslationCreate) -> Artifact:
        artifact = Artifact(id=new_id(), created_at=self._clock(), **fields.model_dump())
        self._translations[artifact.id] = artifact
        return artifact

    async def get_translation(self, translation_id: str) -> Optional[Artifact]:
        return self._translations.get(translation_id)

    async def get_recent_translations(self, limit: int = 10) -> List[Artifact]:
        # Newest insert first among equal timestamps
        newest_first = list(reversed(self._translations.values()))
        newest_first.sort(key=lambda a: a.created_at, reverse=True)
        return newest_first[:max(limit, 0)]

    async def create_saved_text(self, fields: SavedTextCreate) -> SavedText:
        saved = SavedText(id=new_id(), created_at=self._clock(), **fields.model_dump())
        self._saved_texts[saved.id] = saved
        return saved

    async def get_saved_texts_by_user(self, user_id: str, type_filter: Optional[str] = None) -> List[SavedText]:
        texts = [
            t for t in reversed(self._saved_texts.values())
            if t.user_id == user_id and (not type_filter or t.type == type_filter)
        ]
        texts.sort(key=lambda t: t.created_at, reverse=True)
        return texts

    async def get_saved_text(self, saved_text_id: str, user_id: str) -> Optional[SavedText]:
        saved = self._saved_texts.get(saved_text_id)
        if saved is None or saved.user_id != user_id:
            return None
        return saved

    async def delete_saved_text(self, saved_text_id: str, user_id: str) -> bool:
        if await self.get_saved_text(saved_text_id, user_id) is None:
            return False
        del self._saved_texts[saved_text_id]
        return True
