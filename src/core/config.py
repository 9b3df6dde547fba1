"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceScribe settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        openai_api_key: Bearer credential for the upstream transcription API.
            Never logged or returned to callers.
        proxy_url: Where the recorder sends captured audio.
        level_sample_interval: Seconds between audio-level samples while recording.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Upstream transcription API ---
    openai_api_key: SecretStr = SecretStr("")  # Required per request, not at startup
    openai_base_url: str = "https://api.openai.com/v1"
    transcription_provider: str = "openai"
    transcription_timeout: float = 120.0
    max_audio_bytes: int = 25 * 1024 * 1024  # Upstream upload limit

    # --- Recorder request defaults ---
    default_language: str = "en"

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level

    # --- Recorder ---
    proxy_url: str = "http://localhost:8000/transcribe"
    capture_sample_rate: int = 16000
    capture_channels: int = 1
    capture_device: str | None = None  # None = system default input
    level_sample_interval: float = 1 / 30
    timer_interval: float = 1.0
    event_queue_size: int = 256


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
