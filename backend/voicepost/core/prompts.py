# backend/voicepost/core/prompts.py
"""
Prompt construction for the Gemini transform calls.

Holds the tone (output format), content shape (output type) and template
instructions, and renders the polish / translate prompts. Each prompt spells
out the exact JSON object the model must return; the same field names are
declared as a response schema by TransformStage.
"""

import logging
from typing import Optional

from voicepost.core.language_codes import LanguageConverter

logger = logging.getLogger(__name__)

DEFAULT_TONE = "professional"
DEFAULT_SHAPE = "message"

TRANSCRIBE_INSTRUCTION = (
    "Please transcribe this audio accurately and completely. "
    "Return only the transcribed text as plain text, nothing else."
)

TONE_INSTRUCTIONS = {
    "professional": "Use a professional, business-appropriate tone. Be clear, concise, and respectful.",
    "casual": "Use a casual, friendly tone. Be conversational and approachable.",
    "formal": "Use a formal, official tone. Be polished and ceremonious.",
    "friendly": "Use a warm, friendly tone. Be personable and engaging.",
}

SHAPE_INSTRUCTIONS = {
    "message": "Format as a well-structured message suitable for texting or messaging apps.",
    "note": "Format as a concise, organized note with clear points.",
    "email": "Format as a professional email with appropriate greeting and sign-off.",
    "post": "Format as an engaging social media post that's attention-grabbing.",
    "journal": "Format as a reflective journal entry with personal insights.",
}

# Named formatting presets layered on top of the shape instructions
TEMPLATE_INSTRUCTIONS = {
    "meeting-follow-up": (
        "Structure the text as a meeting follow-up: a one-line summary, the key "
        "decisions, the action items with owners, and the next meeting or deadline if mentioned."
    ),
    "bullet-points": (
        "Present the content as a concise bulleted list, one idea per bullet, "
        "keeping the original order of ideas."
    ),
    "action-items": (
        "Extract the tasks mentioned and present them as a checklist of action "
        "items, each starting with a verb."
    ),
    "thank-you": (
        "Shape the text as a thank-you note that names what the sender is "
        "grateful for and closes warmly."
    ),
    "status-update": (
        "Structure the text as a status update with sections for progress, "
        "blockers, and next steps."
    ),
}

POLISH_JSON_FORMAT = '{"polishedText": "the polished text here"}'
TRANSLATE_JSON_FORMAT = '{"translatedText": "direct translation", "polishedText": "polished and refined version"}'


def tone_instruction(tone: str) -> str:
    return TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS[DEFAULT_TONE])


def shape_instruction(shape: str) -> str:
    return SHAPE_INSTRUCTIONS.get(shape, SHAPE_INSTRUCTIONS[DEFAULT_SHAPE])


def template_instruction(template: Optional[str]) -> Optional[str]:
    """Look up a template preset; unknown names are logged and ignored."""
    if not template:
        return None
    instruction = TEMPLATE_INSTRUCTIONS.get(template)
    if instruction is None:
        logger.warning("Ignoring unknown template '%s'", template)
    return instruction


def build_polish_prompt(
    text: str,
    language: str,
    tone: str,
    shape: str,
    template: Optional[str] = None,
) -> str:
    """
    Render the prompt that rewrites a transcription in one language.

    Parameters:
    - text: Input text (transcript or typed text).
    - language: Language code of the text; the output stays in this language.
    - tone: One of TONE_INSTRUCTIONS (falls back to professional).
    - shape: One of SHAPE_INSTRUCTIONS (falls back to message).
    - template: Optional TEMPLATE_INSTRUCTIONS key appended to the format rules.

    Returns:
    - str: The full prompt, ending with the text to polish.
    """
    shape_name = shape if shape in SHAPE_INSTRUCTIONS else DEFAULT_SHAPE
    lines = [
        f"You are an expert writer and editor. Transform the following speech transcription into a well-written {shape_name}.",
        "",
        f"Language: {LanguageConverter.display_name(language)}",
        f"Tone: {tone_instruction(tone)}",
        f"Format: {shape_instruction(shape)}",
    ]
    extra = template_instruction(template)
    if extra:
        lines.append(f"Template: {extra}")
    lines += [
        "",
        "Make the text clear, well-structured, and grammatically correct while preserving the original meaning and intent.",
        "",
        "Return your response as JSON with this exact format:",
        POLISH_JSON_FORMAT,
        "",
        "Text to polish:",
        text,
    ]
    return "\n".join(lines)


def build_translate_prompt(text: str, source_language: str, target_language: str, tone: str) -> str:
    """Render the single prompt that both translates and polishes ``text``."""
    source_name = LanguageConverter.display_name(source_language)
    target_name = LanguageConverter.display_name(target_language)
    return "\n".join([
        f"You are an expert translator and writer. The user will provide text in {source_name}.",
        "",
        "Your task:",
        f"1. Translate the text accurately to {target_name}",
        "2. Polish the translation to make it natural, fluent, and well-structured",
        f"3. {tone_instruction(tone)}",
        "",
        "Return your response as JSON with this exact format:",
        TRANSLATE_JSON_FORMAT,
        "",
        "Text to translate:",
        text,
    ])
