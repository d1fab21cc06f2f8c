"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - JWT_SECRET is required; the process refuses to start without it
    - An empty ADMIN_TOKEN disables every moderation route
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults for every non-secret setting: SQLite file database works out of the box
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


def normalize_database_url(url: str) -> str:
    """Hosted PostgreSQL URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/chat.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        return normalize_database_url(v) if isinstance(v, str) else v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    create_tables: bool = True

    # Auth
    jwt_secret: str = Field(min_length=16)
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 7 * 24 * 3600
    admin_token: str = ""
    bcrypt_rounds: int = Field(10, ge=4, le=31)

    # Chat
    rate_limit_max: int = 5
    rate_limit_window_seconds: float = 10.0
    rate_limit_cooldown_seconds: float = 60.0
    history_limit: int = Field(100, ge=1)
    heartbeat_interval_seconds: float = 25.0
    subscriber_queue_size: int = Field(256, ge=1)
    stream_retry_ms: int = 5000

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
