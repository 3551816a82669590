from typing import Any, Optional

from .errors import (
    EmptyTranscriptError,
    InvalidCredentialError,
    PayloadTooLargeError,
    ProviderError,
    RateLimitedError,
)
from .schemas import ProviderTranscript


def _provider_message(body: Any) -> Optional[str]:
    # OpenAI and Gemini both answer {"error": {"message": "..."}}
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()[:300]
    return None


def _retry_after(headers: Optional[dict]) -> Optional[float]:
    if not headers:
        return None
    raw = headers.get("retry-after") or headers.get("Retry-After")
    try:
        return float(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def raise_for_status(provider: str, status: int, body: Any = None, headers: Optional[dict] = None) -> None:
    if 200 <= status < 300:
        return
    message = _provider_message(body)
    if status in (401, 403):
        raise InvalidCredentialError(f"Invalid API key - please check your {provider} API key.")
    if status == 429:
        raise RateLimitedError(
            f"{provider} rate limit exceeded - please wait a moment and try again.",
            retry_after=_retry_after(headers),
        )
    if status == 413:
        raise PayloadTooLargeError(f"Audio file too large for {provider}.")
    raise ProviderError(
        f"{provider} API error: {status} - {message or 'Unknown error'}",
        provider_status=status,
    )


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def decode_whisper(payload: Any, engine: str = "whisper-1") -> ProviderTranscript:
    """{"text": ..., "language": ..., "duration": ...} (verbose_json)."""
    if not isinstance(payload, dict):
        raise EmptyTranscriptError("Unable to transcribe audio file - unexpected response from whisper.")
    text = _clean_text(payload.get("text"))
    if not text:
        raise EmptyTranscriptError("Unable to transcribe audio file - no text returned from whisper.")
    language = payload.get("language")
    return ProviderTranscript(
        text=text,
        engine=engine,
        language=language if isinstance(language, str) and language else None,
        duration=_as_float(payload.get("duration")),
    )


def decode_gemini(payload: Any, engine: str = "gemini") -> ProviderTranscript:
    """candidates[0].content.parts[0].text"""
    text = None
    try:
        text = _clean_text(payload["candidates"][0]["content"]["parts"][0]["text"])
    except (KeyError, IndexError, TypeError):
        text = None
    if not text:
        raise EmptyTranscriptError("Unable to transcribe audio file - no text returned from gemini.")
    return ProviderTranscript(text=text, engine=engine)
