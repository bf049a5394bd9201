# backend/voicepost/core/pipeline.py
"""
Speech / text to Artifact pipeline.

One PipelineRun per request walks the state machine

    IDLE -> TRANSCRIBING -> TRANSFORMING -> PERSISTED -> DONE

with terminal failures EMPTY_TRANSCRIPT (blank transcription) and FAILED
(upstream error after retries, fatal upstream error, or storage failure).
Text input skips TRANSCRIBING. Malformed model output never fails a run:
TransformStage has already fallen back to usable text.

An Artifact is written only after every earlier stage succeeded, so a failed
run leaves nothing behind in the store.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from voicepost.core.config import Settings
from voicepost.core.errors import EmptyTranscriptError, PersistenceError
from voicepost.core.retry import RetryController
from voicepost.core.transcription import TranscriptionStage
from voicepost.core.transform import TransformStage
from voicepost.models import Artifact, PipelineInput, PolishOptions, TranslateOptions, TranslationCreate
from voicepost.storage.base import ResultStore

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    TRANSCRIBING = "transcribing"
    TRANSFORMING = "transforming"
    PERSISTED = "persisted"
    DONE = "done"
    EMPTY_TRANSCRIPT = "empty_transcript"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.EMPTY_TRANSCRIPT, PipelineState.FAILED})

TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.TRANSCRIBING, PipelineState.TRANSFORMING, PipelineState.FAILED},
    PipelineState.TRANSCRIBING: {
        PipelineState.TRANSFORMING,
        PipelineState.EMPTY_TRANSCRIPT,
        PipelineState.FAILED,
    },
    PipelineState.TRANSFORMING: {PipelineState.PERSISTED, PipelineState.FAILED},
    PipelineState.PERSISTED: {PipelineState.DONE},
}


class PipelineRun:
    """
    A single, single-use execution of the pipeline.

    Attributes:
        state: Current PipelineState
        history: Every state entered, in order
        error: The exception that ended the run, if it failed
    """

    def __init__(
        self,
        transcriber: TranscriptionStage,
        transformer: TransformStage,
        store: ResultStore,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self._transcriber = transcriber
        self._transformer = transformer
        self._store = store
        self._cancel_event = cancel_event
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self.error: Optional[BaseException] = None

    def _advance(self, new_state: PipelineState) -> None:
        if new_state not in TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid pipeline transition {self.state.value} -> {new_state.value}")
        logger.debug("Pipeline %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    async def polish(self, source: PipelineInput, options: PolishOptions) -> Artifact:
        """Transcribe (if needed), polish in the same language and persist."""

        async def transform(text: str) -> TranslationCreate:
            polished = await self._transformer.polish(
                text,
                options.language,
                options.output_format,
                options.output_type,
                template=options.template,
                cancel_event=self._cancel_event,
            )
            return TranslationCreate(
                original_text=text,
                translated_text=text,
                polished_text=polished,
                source_language=options.language,
                target_language=None,
                output_format=options.output_format,
                output_type=options.output_type,
            )

        return await self._execute(source, transform)

    async def translate(self, source: PipelineInput, options: TranslateOptions) -> Artifact:
        """Transcribe (if needed), translate + polish in one call and persist."""

        async def transform(text: str) -> TranslationCreate:
            result = await self._transformer.translate(
                text,
                options.source_language,
                options.target_language,
                options.output_format,
                cancel_event=self._cancel_event,
            )
            return TranslationCreate(
                original_text=text,
                translated_text=result.translated_text,
                polished_text=result.polished_text,
                source_language=options.source_language,
                target_language=options.target_language,
                output_format=options.output_format,
                output_type=None,
            )

        return await self._execute(source, transform)

    async def _execute(
        self,
        source: PipelineInput,
        transform: Callable[[str], Awaitable[TranslationCreate]],
    ) -> Artifact:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("PipelineRun instances are single-use")

        try:
            if source.has_audio:
                self._advance(PipelineState.TRANSCRIBING)
                text = await self._transcriber.transcribe(
                    source.audio, source.mime_type, cancel_event=self._cancel_event
                )
            else:
                text = source.text.strip()

            self._advance(PipelineState.TRANSFORMING)
            fields = await transform(text)

            try:
                artifact = await self._store.create_translation(fields)
            except Exception as exc:
                raise PersistenceError(f"Failed to save result: {exc}") from exc
            self._advance(PipelineState.PERSISTED)
        except EmptyTranscriptError as exc:
            self.error = exc
            self._advance(PipelineState.EMPTY_TRANSCRIPT)
            raise
        except Exception as exc:
            self.error = exc
            self._advance(PipelineState.FAILED)
            logger.error("Pipeline failed: %s", exc)
            raise

        self._advance(PipelineState.DONE)
        logger.info("Pipeline produced artifact %s", artifact.id)
        return artifact


class Pipeline:
    """
    Entry point used by the HTTP layer. Holds the stateless stages and the
    store; each call creates a fresh PipelineRun, so concurrent requests
    share nothing but the store.
    """

    def __init__(self, transcriber: TranscriptionStage, transformer: TransformStage, store: ResultStore):
        self.transcriber = transcriber
        self.transformer = transformer
        self.store = store

    def new_run(self, cancel_event: Optional[asyncio.Event] = None) -> PipelineRun:
        return PipelineRun(self.transcriber, self.transformer, self.store, cancel_event)

    async def polish(
        self,
        source: PipelineInput,
        options: PolishOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Artifact:
        return await self.new_run(cancel_event).polish(source, options)

    async def translate(
        self,
        source: PipelineInput,
        options: TranslateOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Artifact:
        return await self.new_run(cancel_event).translate(source, options)

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Transcription only: nothing is transformed or stored."""
        return await self.transcriber.transcribe(audio, mime_type, cancel_event=cancel_event)


def build_pipeline(settings: Settings, store: ResultStore, client) -> Pipeline:
    """
    Wire the stages around one google-genai client.

    Each stage gets its own RetryController built from the same injected
    RetryConfig.
    """
    transcriber = TranscriptionStage(client, RetryController(settings.retry), model=settings.gemini_model)
    transformer = TransformStage(client, RetryController(settings.retry), model=settings.gemini_model)
    return Pipeline(transcriber, transformer, store)
