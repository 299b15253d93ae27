"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading.

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins for the chat front-end.
    cors_origins_str: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── Extraction tool (yt-dlp) ──────────────────────────────────
    # Executable name or absolute path. Must be on PATH when a bare name.
    ytdlp_path: str = "yt-dlp"

    # Hard wall-clock ceiling for one channel enumeration.
    extraction_timeout_seconds: float = 600.0

    # maxVideos is clamped into [1, max_videos_limit] server-side.
    default_max_videos: int = 10
    max_videos_limit: int = 100

    # Bound on the stderr tail carried by ExtractionFailed.
    diagnostic_max_chars: int = 500

    # ─── Caption fetch ─────────────────────────────────────────────
    caption_timeout_seconds: float = 15.0

    # ─── Rate limiting ─────────────────────────────────────────────
    # Each ingestion spawns a child process; keep this conservative.
    youtube_rate_limit: str = "5/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )


# Module-level singleton: import this instead of instantiating Settings()
settings = Settings()
