# backend/voicepost/db/models.py

from sqlalchemy import Table, Column, String, Text, ForeignKey, DateTime, MetaData

metadata = MetaData()

User = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("username", String(255), unique=True, nullable=False),
    Column("email", String(255), unique=True, nullable=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Translation = Table(
    "translations",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("original_text", Text, nullable=False),
    Column("translated_text", Text, nullable=False),
    Column("polished_text", Text, nullable=False),
    Column("source_language", String(10), nullable=False),
    Column("target_language", String(10), nullable=True),     # null for polish-only
    Column("output_format", String(50), nullable=False),
    Column("output_type", String(50), nullable=True),         # null for translate-only
    Column("created_at", DateTime(timezone=True), nullable=False),
)

SavedText = Table(
    "saved_texts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("type", String(50), nullable=False),               # "polish" or "translate"
    Column("original_text", Text, nullable=False),
    Column("polished_text", Text, nullable=False),
    Column("translated_text", Text, nullable=True),
    Column("source_language", String(10), nullable=False),
    Column("target_language", String(10), nullable=True),
    Column("output_format", String(50), nullable=False),
    Column("output_type", String(50), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)
