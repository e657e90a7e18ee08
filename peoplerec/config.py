"""
Configuration utilities for the recommendation service.
"""

from functools import lru_cache
import logging
import os
from pydantic import BaseModel, Field


def _env(name: str, default: str, cast=str):
    return Field(default_factory=lambda: cast(os.getenv(name, default)))


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    neo4j_uri: str = _env("NEO4J_URI", "bolt://localhost:7687")
    neo4j_user: str = _env("NEO4J_USER", "neo4j")
    neo4j_password: str = _env("NEO4J_PASSWORD", "password")

    # "neo4j" or "snapshot" (CSV files loaded in memory).
    backend: str = _env("PEOPLEREC_BACKEND", "neo4j")
    snapshot_dir: str = _env("PEOPLEREC_SNAPSHOT_DIR", "data")

    directory_cap: int = _env("PEOPLEREC_DIRECTORY_CAP", "10", int)
    fetch_timeout: float = _env("PEOPLEREC_FETCH_TIMEOUT", "2.0", float)
    log_level: str = _env("PEOPLEREC_LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at the configured level."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
