# backend/voicepost/api/routes_actions.py
"""
This module defines the FastAPI routes that run the AI pipeline.

It provides endpoints for:
- Transcription only (audio --> text)
- Polish / Translate of recorded speech (multipart upload or base64 JSON)
- Polish / Translate of typed text
- Recent translation artifacts
- Supported languages and a health check

Route functions only validate parameters and hand them to the Pipeline;
upstream and domain errors are turned into responses by the exception
handlers registered in voicepost.main.
"""

# FastAPI Imports
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

# Utility Libraries
import asyncio
import base64
import binascii
import logging
from typing import List, Optional

# Import Custom Modules
from voicepost.api.dependencies import disconnect_event, get_pipeline, get_store
from voicepost.core.language_codes import LanguageConverter
from voicepost.core.pipeline import Pipeline
from voicepost.models import (
    Artifact,
    PipelineInput,
    PolishBase64Request,
    PolishOptions,
    PolishTextRequest,
    Shape,
    Tone,
    TranscribeResponse,
    TranslateBase64Request,
    TranslateOptions,
    TranslateTextRequest,
)
from voicepost.storage.base import ResultStore

logger = logging.getLogger(__name__)
router = APIRouter() # FastAPI Router Instance

MAX_AUDIO_BYTES = 25 * 1024 * 1024  # 25MB limit for audio files


async def read_audio(audio: UploadFile) -> PipelineInput:
    """
    Read an uploaded audio file into a PipelineInput.

    Raises:
        HTTPException(400): If the upload is not audio, is empty, or is too large.
    """
    content_type = audio.content_type or ""
    if not content_type.startswith("audio/"):
        raise HTTPException(status_code=400, detail="Only audio files are allowed")

    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="No audio file provided")
    if len(data) > MAX_AUDIO_BYTES:
        raise HTTPException(status_code=413, detail="Audio file exceeds the 25MB limit")

    logger.info("Received %s upload: %d bytes", content_type, len(data))
    return PipelineInput(audio=data, mime_type=content_type)


def decode_base64_audio(audio: str, mime_type: str) -> PipelineInput:
    """
    Decode base64 audio sent by mobile clients.

    Raises:
        HTTPException(400): If the payload is not valid base64 or decodes to nothing.
    """
    try:
        data = base64.b64decode(audio, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Audio must be base64 encoded")
    if not data:
        raise HTTPException(status_code=400, detail="Audio data is required")
    if len(data) > MAX_AUDIO_BYTES:
        raise HTTPException(status_code=413, detail="Audio file exceeds the 25MB limit")

    logger.info("Decoded base64 audio: %d bytes, mimeType: %s", len(data), mime_type)
    return PipelineInput(audio=data, mime_type=mime_type)


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/languages")
async def get_languages():
    """
    FastAPI endpoint: GET /languages
    Returns the languages offered by the client, e.g. [{"code": "en", "name": "English", "flag": ...}]
    """
    return LanguageConverter.supported()


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(
    audio: UploadFile = File(...),
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """
    FastAPI Endpoint: POST /transcribe

    Converts uploaded audio to text without polishing, translating or saving.

    Returns:
        TranscribeResponse: {"text": "..."}

    Raises:
        HTTPException(400): Invalid upload, or nothing could be transcribed.
    """
    source = await read_audio(audio)
    text = await pipeline.transcribe(source.audio, source.mime_type, cancel_event=cancel)
    return TranscribeResponse(text=text)


@router.post("/translate-speech", response_model=Artifact)
async def translate_speech(
    audio: UploadFile = File(...),
    source_language: str = Form(...),
    target_language: str = Form(...),
    output_format: Tone = Form("professional"),
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """
    FastAPI Endpoint: POST /translate-speech

    Steps:
    1. Validate the form fields and the uploaded audio.
    2. Transcribe the audio.
    3. Translate and polish the transcript in one model call.
    4. Save and return the resulting artifact.
    """
    options = TranslateOptions(
        source_language=source_language,
        target_language=target_language,
        output_format=output_format,
    )
    source = await read_audio(audio)
    return await pipeline.translate(source, options, cancel_event=cancel)


@router.post("/polish-speech", response_model=Artifact)
async def polish_speech(
    audio: UploadFile = File(...),
    language: str = Form(...),
    output_format: Tone = Form("professional"),
    output_type: Shape = Form("message"),
    template: Optional[str] = Form(None),
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """
    FastAPI Endpoint: POST /polish-speech

    Converts speech into polished text in the same language, shaped as a
    message, note, email, post or journal entry.
    """
    options = PolishOptions(
        language=language,
        output_format=output_format,
        output_type=output_type,
        template=template,
    )
    source = await read_audio(audio)
    return await pipeline.polish(source, options, cancel_event=cancel)


@router.post("/polish-speech-base64", response_model=Artifact)
async def polish_speech_base64(
    req: PolishBase64Request,
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """Same as /polish-speech for clients that send base64 audio in JSON."""
    source = decode_base64_audio(req.audio, req.mime_type)
    options = PolishOptions(**req.model_dump(include={"language", "output_format", "output_type", "template"}))
    return await pipeline.polish(source, options, cancel_event=cancel)


@router.post("/translate-speech-base64", response_model=Artifact)
async def translate_speech_base64(
    req: TranslateBase64Request,
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """Same as /translate-speech for clients that send base64 audio in JSON."""
    source = decode_base64_audio(req.audio, req.mime_type)
    options = TranslateOptions(**req.model_dump(include={"source_language", "target_language", "output_format"}))
    return await pipeline.translate(source, options, cancel_event=cancel)


@router.post("/polish-text", response_model=Artifact)
async def polish_text(
    req: PolishTextRequest,
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """
    FastAPI Endpoint: POST /polish-text

    Polishes typed text (no audio); transcription is skipped.
    """
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    options = PolishOptions(**req.model_dump(exclude={"text"}))
    return await pipeline.polish(PipelineInput(text=req.text), options, cancel_event=cancel)


@router.post("/translate-text", response_model=Artifact)
async def translate_text(
    req: TranslateTextRequest,
    pipeline: Pipeline = Depends(get_pipeline),
    cancel: asyncio.Event = Depends(disconnect_event),
):
    """
    FastAPI Endpoint: POST /translate-text

    Translates and polishes typed text (no audio).
    """
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    options = TranslateOptions(**req.model_dump(exclude={"text"}))
    return await pipeline.translate(PipelineInput(text=req.text), options, cancel_event=cancel)


@router.get("/translations", response_model=List[Artifact])
async def get_translations(
    limit: int = Query(10, ge=1, le=100),
    store: ResultStore = Depends(get_store),
):
    """Return the most recent artifacts, newest first."""
    return await store.get_recent_translations(limit)


@router.get("/translations/{translation_id}", response_model=Artifact)
async def get_translation(translation_id: str, store: ResultStore = Depends(get_store)):
    """
    Return one artifact by id.

    Raises:
        HTTPException(404): If the artifact does not exist.
    """
    translation = await store.get_translation(translation_id)
    if translation is None:
        raise HTTPException(status_code=404, detail="Translation not found")
    return translation
