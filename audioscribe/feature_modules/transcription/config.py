from typing import Set

from audioscribe.config import settings

class TranscriptionConfig:
    """
    Feature-level view over Settings. Getters read settings at call time so
    tests can patch `audioscribe.config.settings` fields.
    """

    # Upload acceptance: MIME type OR extension must match
    ALLOWED_MIME: Set[str] = {
        "audio/mp3", "audio/mpeg",
        "audio/wav", "audio/x-wav",
        "audio/m4a", "audio/x-m4a", "audio/mp4",
    }
    ALLOWED_EXT: Set[str] = {".mp3", ".wav", ".m4a"}

    # MIME sent to providers, keyed by extension
    PROVIDER_MIME = {
        ".mp3": "audio/mp3",
        ".wav": "audio/wav",
        ".m4a": "audio/mp4",
    }

    PROVIDERS = ("whisper", "gemini")

    GEMINI_PROMPT = (
        "Please transcribe this audio file to text. Provide only the transcribed "
        "text without any additional explanation or formatting."
    )

    # -------- dynamic getters --------
    @staticmethod
    def max_bytes() -> int:
        return settings.transcribe_max_bytes

    @staticmethod
    def gemini_max_bytes() -> int:
        return settings.gemini_max_bytes

    @staticmethod
    def timeout_s() -> int:
        return settings.request_timeout_seconds

    @staticmethod
    def default_provider() -> str:
        return (settings.transcribe_provider or "whisper").strip().lower()

    @staticmethod
    def provider_chain(primary: str | None = None) -> list[str]:
        head = (primary or TranscriptionConfig.default_provider()).strip().lower()
        chain = [head]
        raw = settings.transcribe_fallback_providers or ""
        for name in (x.strip().lower() for x in raw.split(",")):
            if name and name not in chain:
                chain.append(name)
        return chain

    @staticmethod
    def temp_dir() -> str:
        return settings.temp_dir

    # OpenAI / Whisper
    @staticmethod
    def openai_api_key() -> str | None:
        return settings.openai_api_key

    @staticmethod
    def openai_api_base() -> str:
        return settings.openai_api_base.rstrip("/")

    @staticmethod
    def whisper_model() -> str:
        return settings.whisper_model

    # Gemini
    @staticmethod
    def gemini_api_key() -> str | None:
        return settings.gemini_api_key

    @staticmethod
    def gemini_api_base() -> str:
        return settings.gemini_api_base.rstrip("/")

    @staticmethod
    def gemini_model() -> str:
        return settings.gemini_model

    @staticmethod
    def server_key(provider: str) -> str | None:
        if provider == "gemini":
            return TranscriptionConfig.gemini_api_key()
        return TranscriptionConfig.openai_api_key()
