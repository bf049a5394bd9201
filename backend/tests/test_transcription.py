"""
Tests for TranscriptionStage.
"""

import pytest

from fakes import RateLimitError, make_client, reply
from voicepost.core.errors import EmptyTranscriptError, FatalUpstreamError
from voicepost.core.prompts import TRANSCRIBE_INSTRUCTION
from voicepost.core.transcription import TranscriptionStage

AUDIO = b"RIFF....WAVEfmt fake audio bytes"


class TestTranscriptionStage:
    """Tests for TranscriptionStage.transcribe."""

    @pytest.mark.asyncio
    async def test_returns_stripped_transcript(self, retry):
        client = make_client(reply("  Hello world  \n"))
        stage = TranscriptionStage(client, retry)

        assert await stage.transcribe(AUDIO, "audio/wav") == "Hello world"

    @pytest.mark.asyncio
    async def test_sends_instruction_and_inline_audio(self, retry):
        client = make_client(reply("Hello"))
        stage = TranscriptionStage(client, retry, model="gemini-test")

        await stage.transcribe(AUDIO, "audio/webm")

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        parts = kwargs["contents"][0].parts
        assert parts[0].text == TRANSCRIBE_INSTRUCTION
        assert parts[1].inline_data.data == AUDIO
        assert parts[1].inline_data.mime_type == "audio/webm"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n", None])
    async def test_blank_output_is_empty_transcript(self, retry, sleep, text):
        client = make_client(reply(text), reply("never used"))
        stage = TranscriptionStage(client, retry)

        with pytest.raises(EmptyTranscriptError):
            await stage.transcribe(AUDIO, "audio/wav")

        # A blank answer is not retried
        assert client.aio.models.generate_content.await_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, retry, sleep):
        client = make_client(RateLimitError(), RateLimitError(), reply("Good morning"))
        stage = TranscriptionStage(client, retry)

        assert await stage.transcribe(AUDIO, "audio/wav") == "Good morning"
        assert sleep.delays == [2, 4]

    @pytest.mark.asyncio
    async def test_fatal_error(self, retry, sleep):
        client = make_client(ValueError("Unsupported MIME type: audio/xyz"))
        stage = TranscriptionStage(client, retry)

        with pytest.raises(FatalUpstreamError):
            await stage.transcribe(AUDIO, "audio/xyz")

        assert sleep.delays == []
