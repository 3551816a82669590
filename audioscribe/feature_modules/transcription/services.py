from typing import Optional
import logging
import os
import uuid

import httpx
from fastapi import UploadFile

from audioscribe.feature_modules.history.repository import HistoryRepository
from audioscribe.feature_modules.transcription.adapters.gemini import transcribe_gemini
from audioscribe.feature_modules.transcription.adapters.openai_whisper import transcribe_whisper
from audioscribe.feature_modules.transcription.audio.probe import probe_duration
from audioscribe.feature_modules.transcription.config import TranscriptionConfig as Cfg
from audioscribe.feature_modules.transcription.errors import (
    MissingCredentialError,
    ProviderConnectionError,
    ProviderError,
    ProviderNotConfiguredError,
    RateLimitedError,
    TranscriptionError,
)
from audioscribe.feature_modules.transcription.language import resolve_language
from audioscribe.feature_modules.transcription.progress import COMPLETE, READING, ProgressReporter
from audioscribe.feature_modules.transcription.schemas import ProviderTranscript, TranscriptionResult
from audioscribe.feature_modules.transcription.validators import (
    ensure_allowed_media,
    ensure_size,
    ext_for_upload,
    mime_for_upload,
    read_and_check_size,
    require_credential,
)

# Only these let the next provider in the chain have a go; validation,
# credential and content failures end the attempt.
_FALLBACK_ON = (RateLimitedError, ProviderError, ProviderConnectionError)

_PROVIDER_ALIASES = {
    "whisper": "whisper",
    "whisper-1": "whisper",
    "openai": "whisper",
    "gemini": "gemini",
    "google": "gemini",
}

# Latest successful result, overwritten by the next success
_current: Optional[TranscriptionResult] = None


def current_result() -> Optional[TranscriptionResult]:
    return _current


def _set_current(result: Optional[TranscriptionResult]) -> None:
    global _current
    _current = result


def normalize_provider(name: Optional[str]) -> str:
    key = (name or Cfg.default_provider()).strip().lower()
    provider = _PROVIDER_ALIASES.get(key)
    if provider is None:
        raise ProviderNotConfiguredError(
            f"Unknown transcription provider: {key}. Use one of: {', '.join(Cfg.PROVIDERS)}."
        )
    return provider


def _fallback_chain(primary: str) -> list[str]:
    # server-side names; a typo drops that entry rather than failing every request
    chain = [primary]
    for name in Cfg.provider_chain(primary)[1:]:
        provider = _PROVIDER_ALIASES.get(name)
        if provider is None:
            logging.warning("Ignoring unknown fallback provider %r in TRANSCRIBE_FALLBACK_PROVIDERS", name)
            continue
        if provider not in chain:
            chain.append(provider)
    return chain


def _size_ceiling(provider: str) -> Optional[int]:
    return Cfg.gemini_max_bytes() if provider == "gemini" else None


def _write_temp(raw: bytes, ext: str) -> str:
    # fresh id per request, so concurrent uploads never share a path
    temp_dir = Cfg.temp_dir()
    os.makedirs(temp_dir, exist_ok=True)
    path = os.path.join(temp_dir, f"{uuid.uuid4().hex}{ext}")
    with open(path, "wb") as f:
        f.write(raw)
    return path


def _remove_temp(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logging.warning("Could not delete temporary file %s: %s", path, e)


async def _call_provider(
    provider: str,
    *,
    raw: bytes,
    temp_path: str,
    mime_type: str,
    api_key: str,
    progress: ProgressReporter,
    transport: Optional[httpx.AsyncBaseTransport],
) -> ProviderTranscript:
    if provider == "gemini":
        return await transcribe_gemini(
            audio_bytes=raw,
            mime_type=mime_type,
            api_key=api_key,
            progress=progress,
            transport=transport,
        )
    return await transcribe_whisper(
        audio_path=temp_path,
        api_key=api_key,
        progress=progress,
        transport=transport,
    )


async def transcribe_audio(
    *,
    raw: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    history: HistoryRepository,
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    progress: Optional[ProgressReporter] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TranscriptionResult:
    """
    One blocking transcription: validate, hand the audio to the provider chain,
    label the transcript, then record it as current result and in history.
    A user-supplied api_key applies to the requested provider only; fallbacks
    use the server-side keys.
    """
    progress = progress or ProgressReporter()
    try:
        primary = normalize_provider(provider)
        ensure_allowed_media(filename, content_type, Cfg.ALLOWED_MIME, Cfg.ALLOWED_EXT)
        ensure_size(len(raw), Cfg.max_bytes())
        if _size_ceiling(primary) is not None:
            # the requested provider has its own, lower limit
            ensure_size(len(raw), _size_ceiling(primary))
        chain = _fallback_chain(primary)
        primary_key = require_credential(api_key or Cfg.server_key(primary), primary)
    except TranscriptionError as e:
        await progress.failed(e.detail)
        raise

    await progress.milestone(READING)
    mime_type = mime_for_upload(filename, content_type, Cfg.PROVIDER_MIME)
    temp_path = _write_temp(raw, ext_for_upload(filename, content_type))
    try:
        transcript: Optional[ProviderTranscript] = None
        last_error: Optional[TranscriptionError] = None
        for idx, name in enumerate(chain):
            if idx == 0:
                key = primary_key
            else:
                try:
                    key = require_credential(Cfg.server_key(name), name)
                except MissingCredentialError:
                    logging.info("Skipping fallback provider %s: no server key configured", name)
                    continue
                ceiling = _size_ceiling(name)
                if ceiling is not None and len(raw) > ceiling:
                    logging.info("Skipping fallback provider %s: audio exceeds its %d byte limit", name, ceiling)
                    continue
                logging.info("Falling back to %s after %s", name, last_error.code if last_error else "error")
            try:
                transcript = await _call_provider(
                    name,
                    raw=raw,
                    temp_path=temp_path,
                    mime_type=mime_type,
                    api_key=key,
                    progress=progress,
                    transport=transport,
                )
                break
            except _FALLBACK_ON as e:
                logging.warning("Transcription via %s failed: %s", name, e.detail)
                last_error = e
                continue

        if transcript is None:
            raise last_error or ProviderError("No transcription provider available.")

        duration = transcript.duration
        if duration is None:
            duration = probe_duration(temp_path)
    except TranscriptionError as e:
        await progress.failed(e.detail)
        raise
    finally:
        _remove_temp(temp_path)

    result = TranscriptionResult(
        file_name=filename or "audio",
        text=transcript.text,
        language=resolve_language(transcript.text, transcript.language),
        duration=duration,
        engine=transcript.engine,
    )
    try:
        await history.append(result)
    except Exception as e:
        logging.exception("Could not record transcription of %s in history", result.file_name)
        await progress.failed(f"Could not save transcription: {e}")
        raise
    _set_current(result)
    await progress.milestone(COMPLETE)
    logging.info("Transcribed %s via %s (%d chars)", result.file_name, result.engine, len(result.text))
    return result


async def transcribe_upload(
    *,
    upload: UploadFile,
    history: HistoryRepository,
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    progress: Optional[ProgressReporter] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TranscriptionResult:
    progress = progress or ProgressReporter()
    try:
        # Reject on metadata before reading the body
        ensure_allowed_media(upload.filename, upload.content_type, Cfg.ALLOWED_MIME, Cfg.ALLOWED_EXT)
        raw = await read_and_check_size(upload, Cfg.max_bytes())
    except TranscriptionError as e:
        await progress.failed(e.detail)
        raise
    finally:
        await upload.close()

    return await transcribe_audio(
        raw=raw,
        filename=upload.filename,
        content_type=upload.content_type,
        history=history,
        provider=provider,
        api_key=api_key,
        progress=progress,
        transport=transport,
    )
