"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Connection strings come from environment variables (never hardcoded credentials)
    - get_settings() is cached (lru_cache) — single instance per process
    - database_url always names the asyncpg driver for PostgreSQL-wire stores

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Retry ceiling defaults high: conflicts are expected to be transient, but the
      loop is still bounded
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Schemes that speak the PostgreSQL wire protocol and need the async driver
_ASYNCPG_SCHEMES = ("cockroachdb://", "postgresql://", "postgres://")


def normalize_database_url(url: str) -> str:
    """Rewrite a bare PostgreSQL-wire scheme to postgresql+asyncpg://."""
    for scheme in _ASYNCPG_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://root@localhost:26257/movr"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """CockroachDB tooling hands out cockroachdb:// or postgresql:// URLs."""
        if isinstance(v, str):
            return normalize_database_url(v)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    auto_create_schema: bool = False
    db_echo: bool = False

    # Transaction retry
    txn_max_retries: int = 100
    txn_base_delay_ms: int = 10
    txn_max_delay_ms: int = 2_000

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
