"""
HTTP tests for the FastAPI app.

The app is built with create_app() around a MemoryStore and a pipeline whose
Gemini client is faked; retry delays are zero so rate-limit paths run fast.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from fakes import TEST_ROUNDS, RateLimitError, json_reply, make_client, reply
from voicepost.core.config import Settings
from voicepost.core.pipeline import build_pipeline
from voicepost.core.retry import RetryConfig
from voicepost.main import create_app
from voicepost.storage.memory import MemoryStore

WEBM = ("clip.webm", b"\x1aE\xdf\xa3fake-webm", "audio/webm")


@pytest.fixture
def settings():
    return Settings(
        secret_key="test-secret",
        bcrypt_rounds=TEST_ROUNDS,
        retry=RetryConfig(initial_delay=0, max_delay=0),
    )


@pytest.fixture
def genai_client():
    return make_client()


@pytest.fixture
def api(settings, genai_client, clock):
    store = MemoryStore(clock=clock, password_rounds=TEST_ROUNDS)
    app = create_app(settings, store=store, pipeline=build_pipeline(settings, store, genai_client))
    with TestClient(app) as client:
        yield client


def answers(genai_client, *responses):
    genai_client.aio.models.generate_content.side_effect = list(responses)


def signup(api, username, password="secret1", email=None):
    response = api.post("/api/auth/signup", json={
        "username": username,
        "email": email,
        "password": password,
        "confirm_password": password,
    })
    assert response.status_code == 201, response.text
    return response.json()


def bearer(auth):
    return {"Authorization": f"Bearer {auth['access_token']}"}


SAVED_POLISH = {
    "type": "polish",
    "original_text": "hey can we meet",
    "polished_text": "Could we meet?",
    "source_language": "en",
    "output_format": "professional",
    "output_type": "message",
}


class TestMisc:
    """Health and language listing."""

    def test_health(self, api):
        assert api.get("/api/health").json() == {"status": "ok"}

    def test_languages(self, api):
        languages = api.get("/api/languages").json()

        assert len(languages) == 18
        assert {"code": "en", "name": "English", "flag": "🇺🇸"} in languages


class TestTextEndpoints:
    """Typed-text polish and translate."""

    def test_polish_text(self, api, genai_client):
        answers(genai_client, json_reply(polishedText="Could we meet tomorrow?"))

        response = api.post("/api/polish-text", json={
            "text": "can we meet tmrw",
            "language": "en",
            "output_format": "casual",
            "output_type": "message",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["polished_text"] == "Could we meet tomorrow?"
        assert body["translated_text"] == body["original_text"] == "can we meet tmrw"
        assert body["target_language"] is None

    def test_polish_text_is_listed_and_fetchable(self, api, genai_client):
        answers(genai_client, json_reply(polishedText="One."), json_reply(polishedText="Two."))
        first = api.post("/api/polish-text", json={"text": "one", "language": "en"}).json()
        second = api.post("/api/polish-text", json={"text": "two", "language": "en"}).json()

        recent = api.get("/api/translations", params={"limit": 1}).json()
        assert [a["id"] for a in recent] == [second["id"]]

        assert api.get(f"/api/translations/{first['id']}").json()["polished_text"] == "One."
        assert api.get("/api/translations/missing").status_code == 404

    def test_blank_text_rejected(self, api, genai_client):
        response = api.post("/api/polish-text", json={"text": "   ", "language": "en"})

        assert response.status_code == 400
        genai_client.aio.models.generate_content.assert_not_awaited()

    def test_unknown_tone_rejected(self, api):
        response = api.post("/api/polish-text", json={
            "text": "hello", "language": "en", "output_format": "sarcastic",
        })

        assert response.status_code == 422

    def test_translate_text(self, api, genai_client):
        answers(genai_client, json_reply(translatedText="Hola", polishedText="¡Hola!"))

        response = api.post("/api/translate-text", json={
            "text": "Hello", "source_language": "en", "target_language": "es",
        })

        body = response.json()
        assert response.status_code == 200
        assert body["translated_text"] == "Hola"
        assert body["polished_text"] == "¡Hola!"
        assert body["output_type"] is None


class TestSpeechEndpoints:
    """Audio upload and base64 endpoints."""

    def test_transcribe(self, api, genai_client):
        answers(genai_client, reply(" Hello world "))

        response = api.post("/api/transcribe", files={"audio": WEBM})

        assert response.status_code == 200
        assert response.json() == {"text": "Hello world"}

    def test_transcribe_nothing_heard(self, api, genai_client):
        answers(genai_client, reply(""))

        response = api.post("/api/transcribe", files={"audio": WEBM})

        assert response.status_code == 400
        assert response.json()["detail"] == "Could not transcribe audio. Please try speaking more clearly."

    def test_non_audio_upload_rejected(self, api):
        response = api.post("/api/transcribe", files={"audio": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400

    def test_empty_upload_rejected(self, api):
        response = api.post("/api/transcribe", files={"audio": ("clip.webm", b"", "audio/webm")})

        assert response.status_code == 400

    def test_polish_speech(self, api, genai_client):
        answers(genai_client, reply("meeting at noon"), json_reply(polishedText="Meeting at noon."))

        response = api.post(
            "/api/polish-speech",
            files={"audio": WEBM},
            data={"language": "en", "output_type": "note", "template": "action-items"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["original_text"] == "meeting at noon"
        assert body["output_type"] == "note"

    def test_translate_speech(self, api, genai_client):
        answers(genai_client, reply("good night"), json_reply(translatedText="bonne nuit", polishedText="Bonne nuit."))

        response = api.post(
            "/api/translate-speech",
            files={"audio": WEBM},
            data={"source_language": "en", "target_language": "fr"},
        )

        assert response.status_code == 200
        assert response.json()["target_language"] == "fr"

    def test_polish_speech_base64(self, api, genai_client):
        answers(genai_client, reply("hi there"), json_reply(polishedText="Hi there!"))

        response = api.post("/api/polish-speech-base64", json={
            "audio": base64.b64encode(b"fake-m4a").decode(),
            "language": "en",
        })

        assert response.status_code == 200
        assert response.json()["polished_text"] == "Hi there!"
        parts = genai_client.aio.models.generate_content.await_args_list[0].kwargs["contents"][0].parts
        assert parts[1].inline_data.mime_type == "audio/m4a"

    def test_invalid_base64_rejected(self, api):
        response = api.post("/api/translate-speech-base64", json={
            "audio": "***not base64***",
            "source_language": "en",
            "target_language": "es",
        })

        assert response.status_code == 400


class TestUpstreamErrors:
    """AI failures surface as distinct statuses and store nothing."""

    def test_rate_limit_exhausted(self, api, genai_client):
        answers(genai_client, *[RateLimitError() for _ in range(5)])

        response = api.post("/api/polish-text", json={"text": "hello", "language": "en"})

        assert response.status_code == 503
        assert api.get("/api/translations").json() == []

    def test_rate_limit_recovers(self, api, genai_client):
        answers(genai_client, RateLimitError(), RateLimitError(), json_reply(polishedText="Hello."))

        response = api.post("/api/polish-text", json={"text": "hello", "language": "en"})

        assert response.status_code == 200
        assert response.json()["polished_text"] == "Hello."

    def test_fatal_error(self, api, genai_client):
        answers(genai_client, ValueError("API key not valid"))

        response = api.post("/api/polish-text", json={"text": "hello", "language": "en"})

        assert response.status_code == 502
        assert genai_client.aio.models.generate_content.await_count == 1

    def test_ai_not_configured(self, settings):
        app = create_app(settings, store=MemoryStore(password_rounds=TEST_ROUNDS))

        with TestClient(app) as client:
            response = client.post("/api/polish-text", json={"text": "hello", "language": "en"})

        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["detail"]


class TestAuth:
    """Signup, login and the current user."""

    def test_signup_returns_token_and_user(self, api):
        auth = signup(api, "alice", email="alice@example.com")

        assert auth["token_type"] == "bearer"
        assert auth["user"]["username"] == "alice"
        assert "password_hash" not in auth["user"]

    def test_duplicate_username(self, api):
        signup(api, "alice")

        response = api.post("/api/auth/signup", json={
            "username": "alice", "password": "secret2", "confirm_password": "secret2",
        })

        assert response.status_code == 409
        assert response.json()["detail"] == "Username already exists"

    def test_duplicate_email(self, api):
        signup(api, "alice", email="same@example.com")

        response = api.post("/api/auth/signup", json={
            "username": "bob", "email": "same@example.com",
            "password": "secret1", "confirm_password": "secret1",
        })

        assert response.status_code == 409
        assert response.json()["detail"] == "Email already exists"

    @pytest.mark.parametrize("payload", [
        {"username": "al", "password": "secret1", "confirm_password": "secret1"},
        {"username": "alice", "password": "123", "confirm_password": "123"},
        {"username": "alice", "password": "secret1", "confirm_password": "secret2"},
        {"username": "alice", "email": "not-an-email", "password": "secret1", "confirm_password": "secret1"},
    ])
    def test_invalid_signup(self, api, payload):
        assert api.post("/api/auth/signup", json=payload).status_code == 422

    def test_login(self, api):
        signup(api, "alice")

        response = api.post("/api/auth/login", json={"username": "alice", "password": "secret1"})

        assert response.status_code == 200
        me = api.get("/api/auth/me", headers=bearer(response.json()))
        assert me.json()["username"] == "alice"

    def test_multibyte_password_over_bcrypt_limit(self, api):
        password = "é" * 40  # 40 characters, 80 bytes

        response = api.post("/api/auth/signup", json={
            "username": "alice", "password": password, "confirm_password": password,
        })

        assert response.status_code == 422
        assert api.post("/api/auth/login", json={"username": "alice", "password": password}).status_code == 401

    def test_multibyte_password_within_limit(self, api):
        auth = signup(api, "alice", password="é" * 36)

        response = api.post("/api/auth/login", json={"username": "alice", "password": "é" * 36})

        assert response.status_code == 200
        assert auth["user"]["username"] == "alice"

    @pytest.mark.parametrize("username,password", [
        ("alice", "wrong-pass"),
        ("nobody", "secret1"),
        ("alice", "abc"),
        ("al", "secret1"),
        ("alice", "é" * 40),
    ])
    def test_login_rejected(self, api, username, password):
        signup(api, "alice")

        response = api.post("/api/auth/login", json={"username": username, "password": password})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    def test_me_requires_token(self, api):
        assert api.get("/api/auth/me").status_code == 401
        assert api.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


class TestSavedTexts:
    """Saved texts are private to their owner."""

    def test_guest_sees_empty_list(self, api):
        assert api.get("/api/saved-texts").json() == []
        assert api.get("/api/saved-texts/all").json() == []

    def test_save_requires_login(self, api):
        assert api.post("/api/saved-texts", json=SAVED_POLISH).status_code == 401

    def test_save_list_and_filter(self, api):
        alice = bearer(signup(api, "alice"))
        saved = api.post("/api/saved-texts", json=SAVED_POLISH, headers=alice)
        api.post("/api/saved-texts", headers=alice, json={
            **SAVED_POLISH,
            "type": "translate",
            "translated_text": "¿Podemos vernos?",
            "target_language": "es",
            "output_type": None,
        })

        assert saved.status_code == 201
        assert len(api.get("/api/saved-texts/all", headers=alice).json()) == 2
        assert len(api.get("/api/saved-texts", params={"type": "translate"}, headers=alice).json()) == 1
        polish = api.get("/api/saved-texts/polish", headers=alice).json()
        assert [t["id"] for t in polish] == [saved.json()["id"]]

    def test_blank_fields_rejected(self, api):
        alice = bearer(signup(api, "alice"))

        response = api.post("/api/saved-texts", headers=alice, json={**SAVED_POLISH, "polished_text": ""})

        assert response.status_code == 422

    @pytest.mark.parametrize("overrides", [
        {"source_language": "en-Latn-US-x"},
        {"target_language": "zh-Hant-TW-x"},
        {"source_language": "e"},
        {"output_format": "sarcastic"},
        {"output_type": "limerick"},
    ])
    def test_fields_outside_column_limits_rejected(self, api, overrides):
        alice = bearer(signup(api, "alice"))

        response = api.post("/api/saved-texts", headers=alice, json={**SAVED_POLISH, **overrides})

        assert response.status_code == 422
        assert api.get("/api/saved-texts/all", headers=alice).json() == []

    def test_other_users_text_is_not_found(self, api):
        alice = bearer(signup(api, "alice"))
        bob = bearer(signup(api, "bob"))
        saved_id = api.post("/api/saved-texts", json=SAVED_POLISH, headers=alice).json()["id"]

        assert api.get(f"/api/saved-texts/{saved_id}", headers=bob).status_code == 404
        assert api.get("/api/saved-texts/all", headers=bob).json() == []
        assert api.delete(f"/api/saved-texts/{saved_id}", headers=bob).status_code == 404

        assert api.get(f"/api/saved-texts/{saved_id}", headers=alice).json()["id"] == saved_id

    def test_delete(self, api):
        alice = bearer(signup(api, "alice"))
        saved_id = api.post("/api/saved-texts", json=SAVED_POLISH, headers=alice).json()["id"]

        response = api.delete(f"/api/saved-texts/{saved_id}", headers=alice)

        assert response.json() == {"message": "Saved text deleted"}
        assert api.get(f"/api/saved-texts/{saved_id}", headers=alice).status_code == 404
        assert api.delete(f"/api/saved-texts/{saved_id}", headers=alice).status_code == 404
