from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptionResult(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    file_name: str
    text: str
    timestamp: datetime = Field(default_factory=_now)
    language: Optional[str] = None
    audio_url: Optional[str] = None
    duration: Optional[float] = None
    engine: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("text must not be empty")
        return v

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        # Older history files carry naive timestamps; treat them as UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ProviderTranscript(BaseModel):
    """What a provider decoder hands back before it becomes a result."""
    text: str
    engine: str
    language: Optional[str] = None
    duration: Optional[float] = None


class HealthResponse(BaseModel):
    status: str
    openai: bool
    gemini: bool
    timestamp: datetime
