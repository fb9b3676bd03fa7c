from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    anthropic_api_key: str = ""
    assemblyai_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    recordings_bucket: str = "voice-recordings"

    # Extraction service (the worker endpoint, or an external deployment of it)
    extraction_service_url: str = "http://localhost:8000/api/jobs/process"
    dispatch_timeout_seconds: float = 30.0

    # Polling / progress
    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 60
    processing_time_multiplier: float = 0.5
    default_estimated_seconds: float = 60.0

    # Review gating
    review_confidence_threshold: float = 0.7
    audit_rejections: bool = True

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    llm_model: str = "claude-sonnet-4-20250514"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
