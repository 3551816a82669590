import os
from typing import Optional, Set

from fastapi import UploadFile

from .errors import EmptyFileError, FileTooLargeError, MissingCredentialError, UnsupportedMediaError

CHUNK_SIZE = 1024 * 1024  # 1MB


def _ext(filename: Optional[str]) -> str:
    return os.path.splitext((filename or "").lower())[1]


def _ctype(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def ensure_allowed_media(
    filename: Optional[str],
    content_type: Optional[str],
    allowed_mime: Set[str],
    allowed_ext: Set[str],
) -> None:
    if _ctype(content_type) in allowed_mime:
        return
    if _ext(filename) in allowed_ext:
        return
    raise UnsupportedMediaError(
        f"Unsupported media type: {_ctype(content_type) or 'unknown'} "
        f"({filename or 'unnamed'}). Only MP3, WAV, and M4A files are allowed."
    )


def ensure_size(size: int, max_bytes: int) -> None:
    if size <= 0:
        raise EmptyFileError("Empty audio file.")
    if size > max_bytes:
        mb = max_bytes / (1024 * 1024)
        raise FileTooLargeError(f"Audio too large (> {mb:g}MB).")


async def read_and_check_size(upload: UploadFile, max_bytes: int) -> bytes:
    """Read the upload in chunks, bailing out as soon as it crosses max_bytes."""
    buf = bytearray()
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            ensure_size(len(buf), max_bytes)
    ensure_size(len(buf), max_bytes)
    return bytes(buf)


def mime_for_upload(filename: Optional[str], content_type: Optional[str], provider_mime: dict) -> str:
    mapped = provider_mime.get(_ext(filename))
    if mapped:
        return mapped
    return _ctype(content_type) or "audio/mp3"


def ext_for_upload(filename: Optional[str], content_type: Optional[str]) -> str:
    ext = _ext(filename)
    if ext in (".mp3", ".wav", ".m4a"):
        return ext
    ctype = _ctype(content_type)
    if "wav" in ctype:
        return ".wav"
    if "m4a" in ctype or ctype == "audio/mp4":
        return ".m4a"
    return ".mp3"


def require_credential(key: Optional[str], provider: str) -> str:
    key = (key or "").strip()
    if not key:
        raise MissingCredentialError(f"No API key configured or supplied for provider '{provider}'.")
    return key
