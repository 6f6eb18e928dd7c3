from typing import List

from pydantic import AnyUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration read from environment variables or defaults."""

    env: str = "dev"
    database_url: AnyUrl | str = "sqlite:////data/archivebot.db"
    log_level: str = "INFO"

    # Wayback Machine
    archive_api: str = "https://wwwb-api.archive.org"
    archive_root: str = "https://web.archive.org/web"
    archive_cookie: str = ""
    user_agent: str = "ArchiveBot/0.1"
    request_timeout: float = 20.0
    retry_delay: float = 1.0
    pending_poll_attempts: int = 40
    pending_poll_max_delay: float = 30.0
    max_concurrent_archives: int = 1

    # Users allowed to change server settings
    administrator_ids: List[str] = []

    host: str = "0.0.0.0"
    port: int = 8080

    @field_validator("env")
    def _validate_env(cls, v: str) -> str:  # noqa: D401
        if v not in {"dev", "prod"}:
            raise ValueError("ENV must be either 'dev' or 'prod'")
        return v

    @field_validator("log_level")
    def _validate_log_level(cls, v: str) -> str:  # noqa: D401
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL {v!r} is not a logging level")
        return level

    @field_validator("max_concurrent_archives", "pending_poll_attempts")
    def _validate_positive(cls, v: int) -> int:  # noqa: D401
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    # Pydantic v2+ configuration pattern
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
