# backend/voicepost/models.py
"""
Pydantic Schemas for the core records and API payloads.

This module defines:

- Core records produced and stored by the pipeline (Artifact, User, SavedText)
- Input fields handed to the ResultStore (TranslationCreate, SavedTextCreate)
- Pipeline input (PipelineInput: either audio or text)
- Request / response bodies of the HTTP layer (polish, translate, auth, saved texts)

Records are frozen: once created they are never modified in place.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

Tone = Literal["professional", "casual", "formal", "friendly"]
Shape = Literal["message", "note", "email", "post", "journal"]
SavedTextType = Literal["polish", "translate"]

# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


# Core records
class TranslationCreate(BaseModel):
    """Fields of a completed transformation, before the store assigns id/created_at."""
    model_config = ConfigDict(frozen=True)

    original_text: str
    translated_text: str
    polished_text: str
    source_language: str
    target_language: Optional[str] = None
    output_format: str
    output_type: Optional[str] = None


class Artifact(TranslationCreate):
    """A completed transcription / translation / polish result."""
    id: str
    created_at: datetime


class User(BaseModel):
    """A registered account. password_hash is a bcrypt hash, never plaintext."""
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: Optional[str] = None
    password_hash: str
    created_at: datetime


class UserPublic(BaseModel):
    """User projection that is safe to return to clients."""
    id: str
    username: str
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, username=user.username, email=user.email)


class SavedTextCreate(BaseModel):
    """Fields of a user-initiated copy of an Artifact."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    type: SavedTextType
    original_text: str
    polished_text: str
    translated_text: Optional[str] = None
    source_language: str
    target_language: Optional[str] = None
    output_format: str
    output_type: Optional[str] = None


class SavedText(SavedTextCreate):
    """A SavedText row, exclusively owned by user_id."""
    id: str
    created_at: datetime


# Pipeline input
class PipelineInput(BaseModel):
    """Either recorded audio or typed text; text bypasses transcription."""
    audio: Optional[bytes] = None
    mime_type: Optional[str] = None
    text: Optional[str] = None

    @model_validator(mode="after")
    def check_one_source(self):
        if (self.audio is None) == (self.text is None):
            raise ValueError("Provide exactly one of audio or text")
        if self.audio is not None:
            if not self.audio:
                raise ValueError("Audio data is required")
            if not self.mime_type:
                raise ValueError("mime_type is required with audio")
        if self.text is not None and not self.text.strip():
            raise ValueError("Text is required")
        return self

    @property
    def has_audio(self) -> bool:
        return self.audio is not None


# Request parameters
class PolishOptions(BaseModel):
    """Polish parameters: language, tone, content shape and optional template."""
    language: str = Field(min_length=2, max_length=10)
    output_format: Tone = "professional"
    output_type: Shape = "message"
    template: Optional[str] = None


class TranslateOptions(BaseModel):
    """Translate parameters: source/target language and tone."""
    source_language: str = Field(min_length=2, max_length=10)
    target_language: str = Field(min_length=2, max_length=10)
    output_format: Tone = "professional"


class PolishTextRequest(PolishOptions):
    """Request body for polishing typed text."""
    text: str = Field(min_length=1)


class TranslateTextRequest(TranslateOptions):
    """Request body for translating typed text."""
    text: str = Field(min_length=1)


class PolishBase64Request(PolishOptions):
    """Request body for polishing base64 encoded audio (mobile clients)."""
    audio: str = Field(min_length=1)
    mime_type: str = "audio/m4a"


class TranslateBase64Request(TranslateOptions):
    """Request body for translating base64 encoded audio (mobile clients)."""
    audio: str = Field(min_length=1)
    mime_type: str = "audio/m4a"


class TranscribeResponse(BaseModel):
    """Response containing the transcribed text."""
    text: str


# Auth payloads
class SignupRequest(BaseModel):
    """Request body for new user signup."""
    username: str = Field(min_length=3, max_length=255)
    email: Optional[EmailStr] = None
    password: str = Field(min_length=6)
    confirm_password: str

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(BaseModel):
    """Request body for login."""
    username: str
    password: str


class AuthResponse(BaseModel):
    """Bearer token issued at signup / login."""
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


# Saved texts
class SaveTextPayload(BaseModel):
    """Payload for saving an artifact; the owner comes from the bearer token."""
    type: SavedTextType
    original_text: str = Field(min_length=1)
    polished_text: str = Field(min_length=1)
    translated_text: Optional[str] = None
    source_language: str = Field(min_length=2, max_length=10)
    target_language: Optional[str] = Field(default=None, min_length=2, max_length=10)
    output_format: Tone
    output_type: Optional[Shape] = None

    @field_validator("source_language")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def for_user(self, user_id: str) -> SavedTextCreate:
        return SavedTextCreate(user_id=user_id, **self.model_dump())
