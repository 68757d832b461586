"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from conceptgraph.core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()


class TestSettings:
    """Test Settings class."""

    def test_default_values(self) -> None:
        """Test that defaults are sensible."""
        settings = Settings()
        assert settings.data_path == Path("data")
        assert settings.store_backend == "json"
        assert settings.dedup_threshold == 0.8
        assert settings.dedup_max_concepts == 1000
        assert settings.confidence_boost == 1.1
        assert settings.directional_relationship_keys is False
        assert settings.lock_timeout_minutes == 30.0
        assert settings.auto_deduplicate_on_ingest is True
        assert settings.log_level == "INFO"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that env vars override defaults."""
        monkeypatch.setenv("CONCEPTGRAPH_STORE_BACKEND", "memory")
        monkeypatch.setenv("CONCEPTGRAPH_DEDUP_THRESHOLD", "0.65")
        monkeypatch.setenv("CONCEPTGRAPH_LOCK_TIMEOUT_MINUTES", "5")
        monkeypatch.setenv("CONCEPTGRAPH_DIRECTIONAL_RELATIONSHIP_KEYS", "true")

        settings = get_settings()
        assert settings.store_backend == "memory"
        assert settings.dedup_threshold == 0.65
        assert settings.lock_timeout_minutes == 5.0
        assert settings.directional_relationship_keys is True

        # Restore cache for other tests
        get_settings.cache_clear()

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the CONCEPTGRAPH_ prefix is required."""
        monkeypatch.setenv("DEDUP_THRESHOLD", "0.1")

        settings = get_settings()
        assert settings.dedup_threshold == 0.8

        get_settings.cache_clear()

    def test_rejects_out_of_range_threshold(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CONCEPTGRAPH_DEDUP_THRESHOLD", "1.5")
        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONCEPTGRAPH_STORE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            Settings()


class TestGetSettings:
    """Test get_settings function."""

    def test_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same instance."""
        assert get_settings() is get_settings()
