from __future__ import annotations
import os
import re
from datetime import date
from typing import Iterable, Optional
from urllib.parse import quote

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult

_SEPARATOR = "=" * 40
_DISP_UNSAFE_RE = re.compile(r'[\r\n"]')  # strip controls and quotes


def content_disposition(filename: str) -> str:
    """attachment header with an ASCII fallback plus RFC 5987 filename*."""
    safe = _DISP_UNSAFE_RE.sub("", filename or "").strip() or "transcription.txt"
    ascii_name = safe.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(safe, safe='-._~')}"


def _duration(seconds: Optional[float]) -> str:
    # halves round up
    return f"{int(seconds + 0.5)}s" if seconds else "Unknown"


def render_transcript(result: TranscriptionResult) -> str:
    return (
        f"Audio File: {result.file_name}\n"
        f"Language: {result.language or 'Unknown'}\n"
        f"Timestamp: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}\n"
        f"Duration: {_duration(result.duration)}\n"
        "\n"
        "Transcription:\n"
        f"{result.text}"
    )


def render_bundle(results: Iterable[TranscriptionResult]) -> str:
    return "\n".join(
        f"\n{_SEPARATOR}\n{render_transcript(r)}\n{_SEPARATOR}\n" for r in results
    )


def export_filename(result: TranscriptionResult) -> str:
    stem = os.path.splitext(result.file_name)[0] or "audio"
    return f"transcription-{stem}.txt"


def bundle_filename(today: Optional[date] = None) -> str:
    return f"transcriptions-{(today or date.today()).isoformat()}.txt"
