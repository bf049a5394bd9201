# backend/voicepost/core/transcription.py
"""Speech-to-text through a multimodal Gemini request."""

import asyncio
import logging
import time
from typing import Optional

from google.genai import types

from voicepost.core.config import DEFAULT_MODEL
from voicepost.core.errors import EmptyTranscriptError
from voicepost.core.prompts import TRANSCRIBE_INSTRUCTION
from voicepost.core.retry import RetryController

logger = logging.getLogger(__name__)


class TranscriptionStage:
    """
    Converts audio bytes to text with one model call per attempt.

    The audio travels inline with the instruction (the SDK base64-encodes the
    bytes on the wire). The response is free text; no schema is declared.
    """

    def __init__(self, client, retry: RetryController, model: str = DEFAULT_MODEL):
        """
        Args:
            client: google-genai Client (only ``client.aio.models`` is used)
            retry: Controller applying the backoff policy
            model: Gemini model name
        """
        self._client = client
        self._retry = retry
        self.model = model

    def build_contents(self, audio: bytes, mime_type: str) -> list:
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_text(text=TRANSCRIBE_INSTRUCTION),
                    types.Part.from_bytes(data=audio, mime_type=mime_type),
                ],
            )
        ]

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Transcribe an audio clip.

        Args:
            audio: Raw audio bytes
            mime_type: MIME type of the audio (e.g. "audio/webm")
            cancel_event: Stops further retries once set

        Returns:
            The transcript, stripped of surrounding whitespace

        Raises:
            EmptyTranscriptError: The model returned no text (never retried)
            TransientUpstreamError: Rate limited on every attempt
            FatalUpstreamError: Non-retryable AI failure
        """
        contents = self.build_contents(audio, mime_type)
        logger.info("Transcribing %d bytes of %s", len(audio), mime_type)

        async def call() -> str:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
            )
            return response.text or ""

        start = time.perf_counter()
        text = await self._retry.run(call, cancel_event=cancel_event, description="Transcription")
        elapsed = time.perf_counter() - start

        # Blank output is a domain failure, checked outside the retry loop
        if not text.strip():
            logger.info("Transcription returned no text after %.2fs", elapsed)
            raise EmptyTranscriptError()

        text = text.strip()
        logger.info("Transcribed %d chars in %.2fs", len(text), elapsed)
        return text
