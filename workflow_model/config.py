"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All connection strings come from environment variables or .env
    - get_settings() is cached (lru_cache): single instance per process
    - Administrator broadening is off unless explicitly enabled

Design Decisions:
    - Defaults provided for all settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://workflow:workflow@db:5432/workflow"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """asyncpg needs postgresql+asyncpg:// rather than postgresql://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Workflow engine (Camunda REST)
    workflow_engine_url: str = "http://camunda:8080/engine-rest"
    workflow_engine_timeout_seconds: float = 30.0

    # Access control
    # Development-time broadening: every authenticated caller also acts as "administrator".
    grant_administrator_to_authenticated: bool = False
    debug_acl_rules: bool = False
    user_header: str = "X-User-Id"

    # Entity definitions (JSON). None → definitions shipped with the package.
    definitions_dir: str | None = None

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
