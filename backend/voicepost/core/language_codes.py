# backend/voicepost/core/language_codes.py
"""
Language Code Utilities

Prompts sent to Gemini name languages in plain English ("Spanish") rather than
by code ("es"). This module maps the supported language codes to those names
and normalizes incoming tags.

Supported languages are the fixed set offered by the client. Any other valid
BCP-47 tag is still accepted and named through langcodes.
"""
import langcodes        # For normalizing and naming BCP47 language tags


# code --> (English name, flag)
SUPPORTED_LANGUAGES = {
    "en": ("English", "🇺🇸"),
    "es": ("Spanish", "🇪🇸"),
    "fr": ("French", "🇫🇷"),
    "de": ("German", "🇩🇪"),
    "it": ("Italian", "🇮🇹"),
    "pt": ("Portuguese", "🇵🇹"),
    "nl": ("Dutch", "🇳🇱"),
    "ru": ("Russian", "🇷🇺"),
    "zh": ("Chinese", "🇨🇳"),
    "ja": ("Japanese", "🇯🇵"),
    "ko": ("Korean", "🇰🇷"),
    "ar": ("Arabic", "🇸🇦"),
    "hi": ("Hindi", "🇮🇳"),
    "tr": ("Turkish", "🇹🇷"),
    "pl": ("Polish", "🇵🇱"),
    "vi": ("Vietnamese", "🇻🇳"),
    "th": ("Thai", "🇹🇭"),
    "id": ("Indonesian", "🇮🇩"),
}


class LanguageConverter:
    """
    Static helpers to normalize language codes and render them for prompts.
    """
    @staticmethod
    def normalize(code: str) -> str:
        """
        Standardize a language tag into BCP-47 format (e.g., 'en-us' --> 'en-US').
        Unparseable tags are returned stripped but otherwise unchanged.
        """
        code = code.strip()
        try:
            return langcodes.standardize_tag(code)
        except (ValueError, LookupError):
            return code

    @staticmethod
    def display_name(code: str) -> str:
        """
        Return the English name used in prompts.

        Example: 'es' --> 'Spanish', 'pt-BR' --> 'Portuguese (Brazil)'
        Unknown tags fall back to the code itself.
        """
        if code in SUPPORTED_LANGUAGES:
            return SUPPORTED_LANGUAGES[code][0]
        normalized = LanguageConverter.normalize(code)
        if normalized in SUPPORTED_LANGUAGES:
            return SUPPORTED_LANGUAGES[normalized][0]
        try:
            return langcodes.get(normalized).display_name("en")
        except (ValueError, LookupError):
            return code

    @staticmethod
    def same_language(first: str, second: str) -> bool:
        """True when two tags name the same language ('EN' and 'en')."""
        return LanguageConverter.normalize(first).lower() == LanguageConverter.normalize(second).lower()

    @staticmethod
    def supported() -> list:
        """List the supported languages as dicts for the /languages endpoint."""
        return [
            {"code": code, "name": name, "flag": flag}
            for code, (name, flag) in SUPPORTED_LANGUAGES.items()
        ]
