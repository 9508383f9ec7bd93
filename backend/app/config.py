"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Retention and scheduling knobs live here, not in the sweeper (ADR: one place to tune ops)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://memevault:memevault@db:5432/memevault"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Game lifecycle
    phase_duration_minutes: int = Field(10, ge=1)
    enforce_creator_phase_advance: bool = False

    # Uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    trust_forwarded_for: bool = False

    # Retention / maintenance
    game_retention_days: int = Field(30, ge=1)
    audit_log_retention_days: int = Field(90, ge=1)
    storage_warning_bytes: int = 1024 * 1024 * 1024
    orphan_grace_minutes: int = Field(10, ge=0)
    cleanup_enabled: bool = True
    cleanup_hour_utc: int = Field(0, ge=0, le=23)
    run_cleanup_on_start: bool = False

    # Identity
    auth_token_ttl_minutes: int = Field(60, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
