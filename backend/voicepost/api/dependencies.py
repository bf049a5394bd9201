# backend/voicepost/api/dependencies.py
"""
Shared FastAPI dependencies.

The store and the pipeline are created once at startup (see voicepost.main)
and stored on app.state; these helpers hand them to route functions.
"""

import asyncio
import logging

from fastapi import Request

from voicepost.core.errors import ConfigurationError
from voicepost.core.pipeline import Pipeline
from voicepost.storage.base import ResultStore

logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 1.0


def get_store(request: Request) -> ResultStore:
    return request.app.state.store


def get_pipeline(request: Request) -> Pipeline:
    """Return the AI pipeline, or fail when Gemini is not configured."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise ConfigurationError(
            "Gemini AI integration not configured. Please ensure GEMINI_API_KEY is set."
        )
    return pipeline


async def disconnect_event(request: Request):
    """
    Yield an asyncio.Event that is set once the client goes away.

    The pipeline passes it to the RetryController so an abandoned request
    stops retrying instead of sleeping through the whole backoff sequence.
    """
    event = asyncio.Event()

    async def watch():
        while not event.is_set():
            if await request.is_disconnected():
                logger.info("Client disconnected from %s, cancelling retries", request.url.path)
                event.set()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)

    task = asyncio.create_task(watch())
    try:
        yield event
    finally:
        task.cancel()
