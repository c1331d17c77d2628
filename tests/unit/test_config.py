"""Tests for configuration validation."""

import pytest

from taskpulse.core.config import Constants, Settings


def test_defaults_use_local_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without an owner the offline local cache is used."""
    monkeypatch.delenv("OWNER_ID", raising=False)

    settings = Settings(_env_file=None)

    assert settings.owner_id is None
    assert settings.uses_remote_store is False
    assert settings.default_category == "Other"


def test_owner_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables are read case-insensitively."""
    monkeypatch.setenv("owner_id", "user-42")

    settings = Settings(_env_file=None)

    assert settings.owner_id == "user-42"
    assert settings.uses_remote_store is True


def test_minimum_samples_constant() -> None:
    """Insights need five completions."""
    assert Constants.MIN_SAMPLES == 5
    assert "Other" in Constants.DEFAULT_CATEGORIES
