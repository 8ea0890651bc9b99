from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Defaults for the CLI, read from ROUTESMITH_* environment variables or a
    local .env file. Command-line options win over these.
    """

    model_config = SettingsConfigDict(env_prefix="ROUTESMITH_", env_file=".env", extra="ignore")

    # where `routesmith generate` writes the generated package
    output_dir: str = Field(default="generated")

    # "error" fails on duplicate paths/names, "last_wins" keeps the later operation
    collision_policy: Literal["error", "last_wins"] = Field(default="error")

    log_level: str = Field(default="WARNING")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {sorted(valid_levels)}")
        return upper


@lru_cache
def get_settings() -> Settings:
    return Settings()
