"""Configuration module using Pydantic Settings."""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Attributes:
        host: Host address for the server.
        port: Port number for the server.
        store_backend: Which State Store implementation to use.
        database_url: SQLAlchemy URL, used by the "sql" backend.
        data_dir: Root folder of the date-bucketed JSON files, used by the "file" backend.
        poll_interval: Seconds between two reads of the update stream.
        max_backoff: Upper bound (seconds) of the update stream's delay after store failures.
        join_retries: How often a join re-reads and re-claims after losing a race.
        cors_origins: Allowed CORS origins.
        log_level: Root logging level.
        sql_echo: Echo SQL statements (SQLAlchemy engine logging).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, description="Server port")

    store_backend: Literal["sql", "file"] = Field(
        default="sql", description="State Store implementation"
    )
    database_url: str = Field(
        default="sqlite:///./gameData/games.db",
        description="Database connection URL",
    )
    data_dir: str = Field(
        default="gameData", description="Root folder of the JSON file store"
    )

    poll_interval: float = Field(
        default=1.0, gt=0, description="Update stream polling interval (seconds)"
    )
    max_backoff: float = Field(
        default=30.0, gt=0, description="Maximum delay after store read failures"
    )
    join_retries: int = Field(
        default=3, ge=0, description="Retries of a seat claim that lost a race"
    )

    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
    log_level: str = Field(default="INFO", description="Root logging level")
    sql_echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Application settings.
    """
    return Settings()
