"""
Ticket Desk settings.

Values come from the process environment or a local ``.env`` file.
Field names map to upper-case variables (``mongo_uri`` -> ``MONGO_URI``).
"""
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = "Ticket Desk"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = True

    # Storage
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "ticketdesk_dev"
    mongo_timeout_ms: int = 5000

    # Bearer tokens, shared secret with the identity service
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Comma separated, or "*"
    cors_origins: str = "*"

    # Idle RESOLVED tickets are closed by a background sweep
    auto_close_enabled: bool = True
    auto_close_interval_minutes: int = Field(default=60, ge=1)
    auto_close_after_days: int = Field(default=7, ge=1)

    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def allows_any_origin(self) -> bool:
        return self.cors_origins.strip() == "*"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def docs_enabled(self) -> bool:
        """API docs are served in debug mode only"""
        return self.debug


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
