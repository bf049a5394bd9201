# backend/voicepost/main.py
"""
Main entry point for the FastAPI backend application.

This file builds the FastAPI app: it loads settings, picks the ResultStore
backend, wires the Gemini pipeline, configures CORS, registers the error
handlers and includes the HTTP routes.

Routes:
    - All HTTP routes are prefixed with "/api"

Run with:
    uvicorn voicepost.main:app --port 10000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from voicepost.api.routes import router as api_router
from voicepost.core.config import Settings, load_settings
from voicepost.core.errors import (
    ConfigurationError,
    DuplicateUserError,
    EmptyTranscriptError,
    FatalUpstreamError,
    PersistenceError,
    TransientUpstreamError,
    VoicePostError,
)
from voicepost.core.genai_client import create_genai_client
from voicepost.core.logging_config import setup_logging
from voicepost.core.pipeline import Pipeline, build_pipeline
from voicepost.storage.base import ResultStore
from voicepost.storage.factory import create_store

logger = logging.getLogger(__name__)

# Error kind --> (HTTP status, message shown to the client or None for str(exc))
ERROR_RESPONSES = [
    (EmptyTranscriptError, 400, None),
    (DuplicateUserError, 409, None),
    (TransientUpstreamError, 503, "The AI service is busy. Please try again later."),
    (FatalUpstreamError, 502, "The AI service could not process this request."),
    (PersistenceError, 500, "Failed to save the result."),
    (ConfigurationError, 500, None),
    (VoicePostError, 500, "Internal server error"),
]


def register_error_handlers(app: FastAPI) -> None:
    """Map the VoicePostError family (and stray validation errors) to JSON responses."""

    def make_handler(status_code: int, message: Optional[str]):
        async def handler(request: Request, exc: Exception):
            if status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return JSONResponse(status_code=status_code, content={"detail": message or str(exc)})
        return handler

    for exc_class, status_code, message in ERROR_RESPONSES:
        app.add_exception_handler(exc_class, make_handler(status_code, message))

    async def validation_handler(request: Request, exc: ValidationError):
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        return JSONResponse(status_code=422, content={"detail": errors})

    app.add_exception_handler(ValidationError, validation_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store's connections on startup and close them on shutdown."""
    store: ResultStore = app.state.store
    await store.connect()
    logger.info("VoicePost backend started (storage=%s)", app.state.settings.storage_backend)
    try:
        yield
    finally:
        await store.disconnect()
        logger.info("VoicePost backend stopped")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ResultStore] = None,
    pipeline: Optional[Pipeline] = None,
) -> FastAPI:
    """
    Build the application.

    Parameters:
        settings: Configuration (defaults to load_settings()).
        store: ResultStore to use instead of the one named by settings.
        pipeline: Pipeline to use instead of one built around a Gemini client.

    Returns:
        FastAPI: The configured app. When no pipeline is given and no Gemini
        key is configured, the AI endpoints answer 500 and the account and
        saved-text endpoints keep working.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_file)

    store = store or create_store(settings)
    if pipeline is None and settings.ai_configured:
        pipeline = build_pipeline(settings, store, create_genai_client(settings))
    if pipeline is None:
        logger.warning("GEMINI_API_KEY not set: AI endpoints are disabled")

    # Initialize FastAPI Application
    app = FastAPI(title="VoicePost", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.pipeline = pipeline

    # CORS setup
    # Allows the web and mobile clients to call this backend from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,  # Domains allowed to make cross-origin requests
        allow_credentials=True,               # Allow authorization headers
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # HTTP routes
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
