# backend/voicepost/core/transform.py
"""
Polish and Translate requests against Gemini.

Both modes declare a JSON response schema so that parsing has one success
path. When the model still returns something unusable (invalid JSON, wrong
types, blank fields) the stage degrades to the best text it has instead of
raising: for polish the input text, for translate the chain
polishedText -> translatedText -> original text.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from voicepost.core.config import DEFAULT_MODEL
from voicepost.core.language_codes import LanguageConverter
from voicepost.core.prompts import DEFAULT_SHAPE, build_polish_prompt, build_translate_prompt
from voicepost.core.retry import RetryController

logger = logging.getLogger(__name__)

ModelOutput = TypeVar("ModelOutput", bound=BaseModel)

POLISH_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={"polishedText": types.Schema(type=types.Type.STRING)},
    required=["polishedText"],
)

TRANSLATE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "translatedText": types.Schema(type=types.Type.STRING),
        "polishedText": types.Schema(type=types.Type.STRING),
    },
    required=["translatedText", "polishedText"],
)


class PolishOutput(BaseModel):
    """Expected model response for polish requests."""
    model_config = ConfigDict(populate_by_name=True)

    polished_text: Optional[str] = Field(default=None, alias="polishedText")


class TranslateOutput(BaseModel):
    """Expected model response for translate requests."""
    model_config = ConfigDict(populate_by_name=True)

    translated_text: Optional[str] = Field(default=None, alias="translatedText")
    polished_text: Optional[str] = Field(default=None, alias="polishedText")


@dataclass(frozen=True)
class TransformResult:
    """Texts produced by one transform call."""
    translated_text: str
    polished_text: str


def _first_text(*candidates: Optional[str]) -> str:
    """Return the first candidate that is a non-blank string, else ''."""
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return ""


def parse_model_output(raw: Optional[str], output_type: Type[ModelOutput]) -> Optional[ModelOutput]:
    """
    Parse a JSON model response.

    Returns None (and logs) instead of raising when the payload is missing,
    not JSON, or does not match ``output_type``.
    """
    if not raw or not raw.strip():
        logger.warning("Model returned an empty %s payload", output_type.__name__)
        return None
    try:
        return output_type.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Malformed %s payload, using fallback text: %s", output_type.__name__, e)
        return None


class TransformStage:
    """
    Rewrites text in a given tone and shape, optionally translating it.

    Every model call goes through the shared RetryController; parse failures
    are recovered locally and never reach the caller.
    """

    def __init__(self, client, retry: RetryController, model: str = DEFAULT_MODEL):
        self._client = client
        self._retry = retry
        self.model = model

    async def _generate_json(
        self,
        prompt: str,
        schema: types.Schema,
        description: str,
        cancel_event: Optional[asyncio.Event],
    ) -> str:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )

        async def call() -> str:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
            return response.text or ""

        return await self._retry.run(call, cancel_event=cancel_event, description=description)

    async def polish(
        self,
        text: str,
        language: str,
        tone: str,
        shape: str,
        template: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Polish ``text`` without changing its language.

        Args:
            text: Input text
            language: Language code of the text
            tone: professional | casual | formal | friendly
            shape: message | note | email | post | journal
            template: Optional preset name (e.g. "meeting-follow-up")
            cancel_event: Stops further retries once set

        Returns:
            The polished text, or ``text`` itself if the model output is unusable
        """
        prompt = build_polish_prompt(text, language, tone, shape, template)
        raw = await self._generate_json(prompt, POLISH_SCHEMA, "Polish", cancel_event)
        parsed = parse_model_output(raw, PolishOutput)
        return _first_text(parsed.polished_text if parsed else None, text) or text

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        tone: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TransformResult:
        """
        Translate and polish ``text`` in one call.

        When both languages are the same this is a polish with the default
        shape and the translated text is the input itself.

        Returns:
            TransformResult whose polished_text is never blank while ``text`` is not
        """
        if LanguageConverter.same_language(source_language, target_language):
            polished = await self.polish(
                text, source_language, tone, DEFAULT_SHAPE, cancel_event=cancel_event
            )
            return TransformResult(translated_text=text, polished_text=polished)

        prompt = build_translate_prompt(text, source_language, target_language, tone)
        raw = await self._generate_json(prompt, TRANSLATE_SCHEMA, "Translation", cancel_event)
        parsed = parse_model_output(raw, TranslateOutput)

        translated = _first_text(parsed.translated_text if parsed else None, text) or text
        polished = _first_text(
            parsed.polished_text if parsed else None,
            parsed.translated_text if parsed else None,
            text,
        ) or text
        return TransformResult(translated_text=translated, polished_text=polished)
