"""Typed failures of a transcription attempt.

Every error is terminal for the attempt it belongs to. The category tells
callers what the user has to do next: pick another file (validation), enter
another key (credential), wait or give up (provider), or try other audio
(content).
"""
from typing import Optional


class TranscriptionError(Exception):
    status_code: int = 500
    code: str = "transcription_failed"
    category: str = "provider"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_payload(self) -> dict:
        return {"error": self.code, "details": self.detail}


# --- validation: rejected before any network call ---

class UnsupportedMediaError(TranscriptionError):
    status_code = 415
    code = "unsupported_media"
    category = "validation"


class FileTooLargeError(TranscriptionError):
    status_code = 413
    code = "file_too_large"
    category = "validation"


class EmptyFileError(TranscriptionError):
    status_code = 400
    code = "empty_file"
    category = "validation"


class ProviderNotConfiguredError(TranscriptionError):
    status_code = 400
    code = "unknown_provider"
    category = "validation"


# --- credential ---

class MissingCredentialError(TranscriptionError):
    status_code = 401
    code = "missing_credential"
    category = "credential"


class InvalidCredentialError(TranscriptionError):
    status_code = 401
    code = "invalid_credential"
    category = "credential"


# --- provider / transport ---

class RateLimitedError(TranscriptionError):
    status_code = 429
    code = "rate_limited"
    category = "provider"

    def __init__(self, detail: str, retry_after: Optional[float] = None):
        super().__init__(detail)
        self.retry_after = retry_after

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload


class PayloadTooLargeError(TranscriptionError):
    status_code = 413
    code = "payload_too_large"
    category = "provider"


class ProviderError(TranscriptionError):
    status_code = 502
    code = "provider_error"
    category = "provider"

    def __init__(self, detail: str, provider_status: Optional[int] = None):
        super().__init__(detail)
        self.provider_status = provider_status

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.provider_status is not None:
            payload["providerStatus"] = self.provider_status
        return payload


class ProviderConnectionError(TranscriptionError):
    status_code = 502
    code = "provider_unreachable"
    category = "provider"


# --- content: 2xx without a usable transcript ---

class EmptyTranscriptError(TranscriptionError):
    status_code = 422
    code = "no_text"
    category = "content"
