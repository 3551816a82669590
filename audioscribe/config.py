from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    app_env: str = Field("dev", alias="APP_ENV")
    app_host: str = Field("0.0.0.0", alias="APP_HOST")
    app_port: int = Field(8000, alias="APP_PORT")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    # Provider credentials. A request may bring its own key (X-Api-Key);
    # these are the server-side fallbacks.
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    openai_api_base: str = Field("https://api.openai.com/v1", alias="OPENAI_API_BASE")
    whisper_model: str = Field("whisper-1", alias="WHISPER_MODEL")

    gemini_api_key: Optional[str] = Field(None, alias="GEMINI_API_KEY")
    gemini_api_base: str = Field("https://generativelanguage.googleapis.com", alias="GEMINI_API_BASE")
    gemini_model: str = Field("gemini-1.5-flash", alias="GEMINI_MODEL")

    transcribe_provider: str = Field("whisper", alias="TRANSCRIBE_PROVIDER")
    # comma-separated; empty means a failed call is final
    transcribe_fallback_providers: str = Field("", alias="TRANSCRIBE_FALLBACK_PROVIDERS")
    transcribe_max_bytes: int = Field(25 * 1024 * 1024, alias="TRANSCRIBE_MAX_BYTES")
    gemini_max_bytes: int = Field(20 * 1024 * 1024, alias="GEMINI_MAX_BYTES")
    request_timeout_seconds: int = Field(120, alias="REQUEST_TIMEOUT_SECONDS")
    temp_dir: str = Field("temp", alias="TEMP_DIR")

    # --- History ---
    history_backend: str = Field("json", alias="HISTORY_BACKEND")  # json | mongo | memory
    history_path: str = Field("data/transcription-history.json", alias="HISTORY_PATH")
    history_key: str = Field("transcription-history", alias="HISTORY_KEY")
    history_cap: int = Field(100, alias="HISTORY_CAP")

    # Only needed when HISTORY_BACKEND=mongo
    mongodb_uri: str = Field("mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db: str = Field("audioscribe", alias="MONGODB_DB")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
