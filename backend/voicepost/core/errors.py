# backend/voicepost/core/errors.py
"""
Exception hierarchy for the VoicePost backend.

Every error raised by the core derives from VoicePostError so the HTTP layer
can map the whole family to responses in one place (see voicepost.main).

Upstream (AI call) errors:
- TransientUpstreamError: rate-limit / quota signal, retried with backoff
- FatalUpstreamError: anything else, aborted immediately

Domain and storage errors:
- EmptyTranscriptError: the model returned a blank transcript
- PersistenceError: a storage call failed
- UsernameTakenError / EmailTakenError: duplicate signup
- ConfigurationError: AI backend not configured
"""


class VoicePostError(Exception):
    """Base exception for VoicePost errors."""
    pass


class UpstreamError(VoicePostError):
    """Base exception for failures of the external AI service."""
    pass


class TransientUpstreamError(UpstreamError):
    """Raised when the AI service signals temporary overload (rate limit, quota)."""

    def __init__(self, message: str = "AI service is temporarily overloaded"):
        super().__init__(message)


class FatalUpstreamError(UpstreamError):
    """Raised when an AI call fails in a way that retrying cannot fix."""

    def __init__(self, message: str = "AI service request failed"):
        super().__init__(message)


class EmptyTranscriptError(VoicePostError):
    """Raised when transcription produced no text."""

    def __init__(self, message: str = "Could not transcribe audio. Please try speaking more clearly."):
        super().__init__(message)


class PersistenceError(VoicePostError):
    """Raised when the result store fails to read or write."""
    pass


class DuplicateUserError(VoicePostError):
    """Base exception for signup conflicts."""
    pass


class UsernameTakenError(DuplicateUserError):
    """Raised when a username is already registered."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username already exists")


class EmailTakenError(DuplicateUserError):
    """Raised when an email address is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already exists")


class ConfigurationError(VoicePostError):
    """Raised when a required setting (e.g. the Gemini API key) is missing."""
    pass
