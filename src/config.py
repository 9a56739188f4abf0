import logging
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:4200", "http://localhost:4000"]
    )

    # Generation (NVIDIA-hosted OpenAI-compatible endpoint)
    nvidia_api_key: Optional[str] = None
    nvidia_base_url: str = "https://integrate.api.nvidia.com/v1"
    nvidia_model: str = "meta/llama-3.3-70b-instruct"
    nvidia_timeout: int = 300
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9
    generation_max_tokens: int = 8192

    # Uploads and prompting
    max_upload_bytes: int = 50 * 1024 * 1024
    max_document_chars: int = 150_000

    # Sessions
    session_backend: Literal["memory", "redis"] = "memory"
    session_ttl_seconds: int = 30 * 60
    session_max_entries: int = 100
    session_claim_ttl_seconds: int = 120
    session_sweep_interval_seconds: float = 60.0

    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_session_prefix: str = "upload-session"


class StartupCheck(BaseModel):
    """Outcome of validating settings before the API starts serving."""

    ok: bool
    errors: List[str] = Field(default_factory=list)


def check_startup(settings: Settings) -> StartupCheck:
    """Validate settings that are fatal when missing."""
    errors = []
    if not settings.nvidia_api_key:
        errors.append("NVIDIA_API_KEY is not set in the environment variables.")
    if settings.session_ttl_seconds <= 0:
        errors.append("SESSION_TTL_SECONDS must be positive.")
    if settings.session_max_entries <= 0:
        errors.append("SESSION_MAX_ENTRIES must be positive.")
    if not 0 < settings.session_claim_ttl_seconds <= settings.session_ttl_seconds:
        errors.append("SESSION_CLAIM_TTL_SECONDS must be positive and not exceed SESSION_TTL_SECONDS.")

    for error in errors:
        logger.error(f"Startup check failed: {error}")
    return StartupCheck(ok=not errors, errors=errors)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
