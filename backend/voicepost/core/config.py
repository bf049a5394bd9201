# backend/voicepost/core/config.py
"""
Application Settings

Loads configuration from environment variables (and a local .env file, if
present) into a single immutable Settings object. The object is built once at
startup and handed to the components that need it, instead of each module
reading os.environ on its own.

Features:
- Gemini credentials and model selection
- Storage backend selection ("memory" or "relational")
- Bearer token signing parameters
- Retry policy for AI calls (see voicepost.core.retry.RetryConfig)
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from voicepost.core.retry import RetryConfig

DEFAULT_MODEL = "gemini-2.5-flash"
STORAGE_BACKENDS = ("memory", "relational")


def _split_origins(value: str) -> List[str]:
    """Split a comma separated CORS origin list, dropping blanks."""
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""

    gemini_api_key: Optional[str] = None
    gemini_base_url: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL

    storage_backend: str = "memory"
    database_url: str = "sqlite:///./voicepost.db"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 10

    retry: RetryConfig = field(default_factory=RetryConfig)

    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5000"]
    )
    log_level: str = "INFO"
    log_file: Optional[str] = None
    port: int = 10000

    def __post_init__(self):
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unsupported STORAGE_BACKEND '{self.storage_backend}', "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )

    @property
    def ai_configured(self) -> bool:
        return bool(self.gemini_api_key)


def load_settings() -> Settings:
    """
    Build Settings from the process environment.

    Steps:
    1. Load variables from a .env file into os.environ (existing values win).
    2. Read each setting, falling back to the Settings defaults.

    Returns:
        Settings: The resolved configuration.

    Raises:
        ValueError: If a numeric variable cannot be parsed or the storage
            backend name is unknown.
    """
    load_dotenv()
    env = os.environ
    defaults = Settings()
    retry_defaults = defaults.retry

    retry = RetryConfig(
        max_attempts=int(env.get("RETRY_MAX_ATTEMPTS", retry_defaults.max_attempts)),
        initial_delay=float(env.get("RETRY_INITIAL_DELAY", retry_defaults.initial_delay)),
        max_delay=float(env.get("RETRY_MAX_DELAY", retry_defaults.max_delay)),
        backoff_factor=float(env.get("RETRY_BACKOFF_FACTOR", retry_defaults.backoff_factor)),
    )

    origins = env.get("CORS_ORIGINS")

    return Settings(
        gemini_api_key=env.get("GEMINI_API_KEY") or None,
        gemini_base_url=env.get("GEMINI_BASE_URL") or None,
        gemini_model=env.get("GEMINI_MODEL", defaults.gemini_model),
        storage_backend=env.get("STORAGE_BACKEND", defaults.storage_backend).lower(),
        database_url=env.get("DATABASE_URL", defaults.database_url),
        secret_key=env.get("SECRET_KEY", defaults.secret_key),
        access_token_expire_minutes=int(
            env.get("ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes)
        ),
        bcrypt_rounds=int(env.get("BCRYPT_ROUNDS", defaults.bcrypt_rounds)),
        retry=retry,
        cors_origins=_split_origins(origins) if origins else defaults.cors_origins,
        log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
        log_file=env.get("LOG_FILE") or None,
        port=int(env.get("PORT", defaults.port)),
    )
