# backend/voicepost/core/genai_client.py
"""
Gemini Client Initialization

Creates the google-genai client used by the transcription and transform
stages. Unlike a module-level singleton, the client is built from Settings at
startup so that a missing API key only disables the AI endpoints instead of
preventing the app from importing.
"""

from google import genai
from google.genai import types

from voicepost.core.config import Settings
from voicepost.core.errors import ConfigurationError


def create_genai_client(settings: Settings) -> genai.Client:
    """
    Create a Gemini client from settings.

    Parameters:
        settings (Settings): Needs gemini_api_key, optionally gemini_base_url
            (for a Gemini-compatible proxy).

    Returns:
        genai.Client: Client whose ``aio`` namespace is used for async calls.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    if not settings.ai_configured:
        raise ConfigurationError(
            "Gemini AI integration not configured. Set GEMINI_API_KEY."
        )

    http_options = None
    if settings.gemini_base_url:
        http_options = types.HttpOptions(base_url=settings.gemini_base_url)

    return genai.Client(api_key=settings.gemini_api_key, http_options=http_options)
