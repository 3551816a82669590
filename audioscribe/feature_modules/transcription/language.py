import re
from typing import Optional

# Checked in order; the first pattern found anywhere in the text labels the
# whole transcript. Han-only text lands on "Japanese" because that pattern
# includes the CJK block and is checked before "Chinese".
_SCRIPT_PATTERNS = (
    ("Thai", re.compile(r"[\u0E00-\u0E7F]")),
    ("Japanese", re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")),
    ("Chinese", re.compile(r"[\u4E00-\u9FFF]")),
    ("Korean", re.compile(r"[\uAC00-\uD7AF]")),
    ("Arabic", re.compile(r"[\u0600-\u06FF]")),
)

DEFAULT_LANGUAGE = "English"

_LANGUAGE_NAMES = {
    "en": "English",
    "th": "Thai",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ar": "Arabic",
    "hi": "Hindi",
}
# Whisper's verbose_json reports lowercase English names ("english")
_NAMES_BY_LOWER = {name.lower(): name for name in _LANGUAGE_NAMES.values()}


def detect_language(text: str) -> str:
    for label, pattern in _SCRIPT_PATTERNS:
        if pattern.search(text or ""):
            return label
    return DEFAULT_LANGUAGE


def language_name(code: str) -> str:
    """Display label for a provider language code or name."""
    key = (code or "").strip().lower()
    if key in _LANGUAGE_NAMES:
        return _LANGUAGE_NAMES[key]
    if key in _NAMES_BY_LOWER:
        return _NAMES_BY_LOWER[key]
    return key.upper()


def resolve_language(text: str, reported: Optional[str] = None) -> str:
    if reported and reported.strip():
        return language_name(reported)
    return detect_language(text)
