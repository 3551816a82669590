import base64
import json
from typing import AsyncIterator, Optional

import httpx

from audioscribe.feature_modules.transcription.config import TranscriptionConfig as Cfg
from audioscribe.feature_modules.transcription.decoders import decode_gemini, raise_for_status
from audioscribe.feature_modules.transcription.errors import EmptyTranscriptError, ProviderConnectionError
from audioscribe.feature_modules.transcription.progress import (
    DECODING,
    TRANSCRIBING,
    ProgressReporter,
)
from audioscribe.feature_modules.transcription.schemas import ProviderTranscript

# Gemini generateContent with inline base64 audio (JSON)
# POST {GEMINI_API_BASE}/v1beta/models/{model}:generateContent?key=...

_UPLOAD_CHUNK = 64 * 1024

def build_payload(audio_bytes: bytes, mime_type: str) -> dict:
    return {
        "contents": [{
            "parts": [
                {"text": Cfg.GEMINI_PROMPT},
                {
                    "inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(audio_bytes).decode("ascii"),
                    }
                },
            ]
        }]
    }

async def _stream(body: bytes, progress: ProgressReporter) -> AsyncIterator[bytes]:
    total = len(body)
    sent = 0
    for start in range(0, total, _UPLOAD_CHUNK):
        chunk = body[start:start + _UPLOAD_CHUNK]
        sent += len(chunk)
        yield chunk
        await progress.upload_bytes(sent, total)

def _json_or_text(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return resp.text

async def transcribe_gemini(
    *,
    audio_bytes: bytes,
    mime_type: str,
    api_key: str,
    progress: ProgressReporter,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderTranscript:
    model = Cfg.gemini_model()
    url = f"{Cfg.gemini_api_base()}/v1beta/models/{model}:generateContent"
    body = json.dumps(build_payload(audio_bytes, mime_type)).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Content-Length": str(len(body)),
        "Accept": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=Cfg.timeout_s(), transport=transport) as client:
            resp = await client.post(
                url,
                params={"key": api_key},
                headers=headers,
                content=_stream(body, progress),
            )
    except httpx.TimeoutException as e:
        raise ProviderConnectionError("Gemini request timed out.") from e
    except httpx.TransportError as e:
        raise ProviderConnectionError("Could not reach the Gemini endpoint.") from e

    await progress.milestone(TRANSCRIBING)
    data = _json_or_text(resp)
    raise_for_status("gemini", resp.status_code, data, dict(resp.headers))

    await progress.milestone(DECODING)
    if not isinstance(data, dict):
        raise EmptyTranscriptError("Unable to transcribe audio file - unexpected response from gemini.")
    return decode_gemini(data, engine=model)
