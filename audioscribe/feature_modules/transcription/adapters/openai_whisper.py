from typing import Optional

import httpx
from openai import AsyncOpenAI, APIConnectionError, APIStatusError

from audioscribe.feature_modules.transcription.config import TranscriptionConfig as Cfg
from audioscribe.feature_modules.transcription.decoders import decode_whisper, raise_for_status
from audioscribe.feature_modules.transcription.errors import ProviderConnectionError
from audioscribe.feature_modules.transcription.progress import (
    DECODING,
    TRANSCRIBING,
    UPLOADING,
    ProgressReporter,
)
from audioscribe.feature_modules.transcription.schemas import ProviderTranscript

# OpenAI Audio Transcriptions endpoint (multipart)
# POST {OPENAI_API_BASE}/audio/transcriptions
# form: file=@..., model=whisper-1, response_format=verbose_json
# The SDK owns the multipart encoding, so upload progress is indeterminate.

def _client(api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> AsyncOpenAI:
    http_client = httpx.AsyncClient(transport=transport, timeout=Cfg.timeout_s()) if transport else None
    return AsyncOpenAI(
        api_key=api_key,
        base_url=Cfg.openai_api_base(),
        timeout=Cfg.timeout_s(),
        max_retries=0,  # failures surface to the user, no silent retry
        http_client=http_client,
    )

async def transcribe_whisper(
    *,
    audio_path: str,
    api_key: str,
    progress: ProgressReporter,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderTranscript:
    model = Cfg.whisper_model()
    client = _client(api_key, transport)
    await progress.indeterminate(UPLOADING)
    try:
        with open(audio_path, "rb") as fh:
            resp = await client.audio.transcriptions.create(
                model=model,
                file=fh,
                response_format="verbose_json",
                # language left unset: let Whisper auto-detect
            )
    except APIStatusError as e:
        raise_for_status("whisper", e.status_code, e.body, dict(e.response.headers))
        raise
    except APIConnectionError as e:
        raise ProviderConnectionError("Could not reach the whisper transcription endpoint.") from e
    finally:
        await client.close()

    await progress.milestone(TRANSCRIBING)
    await progress.milestone(DECODING)
    # The SDK builds the model without validation; read only what we need
    payload = {
        "text": getattr(resp, "text", None),
        "language": getattr(resp, "language", None),
        "duration": getattr(resp, "duration", None),
    }
    return decode_whisper(payload, engine=model)
