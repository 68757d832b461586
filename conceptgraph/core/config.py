"""Centralized application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CONCEPTGRAPH_", env_file=".env", extra="ignore"
    )

    # Data storage
    data_path: Path = Path("data")
    store_backend: Literal["json", "memory"] = "json"

    # Deduplication defaults
    dedup_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    dedup_max_concepts: int = Field(default=1000, ge=1)
    confidence_boost: float = Field(default=1.1, ge=0.0)
    directional_relationship_keys: bool = False

    # Stale lock janitor threshold
    lock_timeout_minutes: float = Field(default=30.0, gt=0.0)

    # Run a document-scoped dedup after each extraction ingest
    auto_deduplicate_on_ingest: bool = True

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
