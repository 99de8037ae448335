"""
Engine configuration, read from MINIREL_* environment variables.
"""
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MINIREL_",
        case_sensitive=False,
        extra="ignore",
    )

    database: str = ":memory:"
    # Log every SQL statement at INFO instead of DEBUG
    echo: bool = False
    # PRAGMA foreign_keys; sqlite leaves it off unless asked
    foreign_keys: bool = True
    # the demo API hands the connection to worker threads
    check_same_thread: bool = True

    @field_validator("database")
    @classmethod
    def _not_blank(cls, value):
        if not value.strip():
            raise ValueError("database path must not be empty")
        return value


@lru_cache
def get_config() -> EngineConfig:
    return EngineConfig()
