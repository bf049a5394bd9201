"""
Tests for settings, language helpers, password hashing and tokens.
"""

import pytest

from voicepost.auth import create_access_token, decode_user_id
from voicepost.core.config import Settings, load_settings
from voicepost.core.errors import ConfigurationError
from voicepost.core.genai_client import create_genai_client
from voicepost.core.language_codes import LanguageConverter
from voicepost.core.security import hash_password, verify_password
from voicepost.models import User
from voicepost.storage.factory import create_store
from voicepost.storage.memory import MemoryStore
from voicepost.storage.relational import RelationalStore


class TestSettings:
    """Tests for load_settings."""

    def test_defaults(self, monkeypatch):
        for name in ("GEMINI_API_KEY", "STORAGE_BACKEND", "RETRY_MAX_ATTEMPTS", "CORS_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()

        assert settings.storage_backend == "memory"
        assert settings.gemini_model == "gemini-2.5-flash"
        assert settings.retry.max_attempts == 5
        assert settings.ai_configured is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key-123")
        monkeypatch.setenv("STORAGE_BACKEND", "Relational")
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "3")
        monkeypatch.setenv("RETRY_INITIAL_DELAY", "0.5")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

        settings = load_settings()

        assert settings.ai_configured is True
        assert settings.storage_backend == "relational"
        assert settings.retry.delays() == [0.5, 1.0]
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            Settings(storage_backend="redis")

    def test_store_factory(self, tmp_path):
        assert isinstance(create_store(Settings()), MemoryStore)
        relational = Settings(storage_backend="relational", database_url=f"sqlite:///{tmp_path / 'x.db'}")
        assert isinstance(create_store(relational), RelationalStore)

    @pytest.mark.asyncio
    async def test_default_relational_url_connects(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = create_store(Settings(storage_backend="relational", bcrypt_rounds=4))

        await store.connect()
        try:
            user = await store.create_user("alice", "secret1")
            assert await store.get_user(user.id) is not None
        finally:
            await store.disconnect()

        assert (tmp_path / "voicepost.db").exists()

    def test_genai_client_requires_key(self):
        with pytest.raises(ConfigurationError):
            create_genai_client(Settings())


class TestLanguageConverter:
    """Tests for LanguageConverter."""

    @pytest.mark.parametrize("code,name", [("es", "Spanish"), ("zh", "Chinese"), ("pt-BR", "Portuguese (Brazil)")])
    def test_display_name(self, code, name):
        assert LanguageConverter.display_name(code) == name

    def test_same_language_ignores_case(self):
        assert LanguageConverter.same_language("EN", "en")
        assert not LanguageConverter.same_language("en", "es")


class TestSecurity:
    """Tests for password hashing and bearer tokens."""

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        hashed = await hash_password("secret1", rounds=4)

        assert hashed.startswith("$2")
        assert await verify_password("secret1", hashed) is True
        assert await verify_password("secret2", hashed) is False

    @pytest.mark.asyncio
    async def test_malformed_hash_does_not_verify(self):
        assert await verify_password("secret1", "not-a-bcrypt-hash") is False

    def test_token_round_trip(self, clock):
        settings = Settings(secret_key="test-secret")
        user = User(id="user-1", username="alice", password_hash="x", created_at=clock())

        token = create_access_token(user, settings)

        assert decode_user_id(token, settings) == "user-1"
        assert decode_user_id(token, Settings(secret_key="other-secret")) is None
        assert decode_user_id("garbage", settings) is None
