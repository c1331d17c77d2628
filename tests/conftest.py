"""Pytest configuration and shared fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskpulse.core.config import Settings
from taskpulse.main import app


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing every storage path into a temporary directory."""
    return Settings(
        sqlite_db_path=str(tmp_path / "taskpulse.db"),
        local_cache_path=str(tmp_path / "taskpulse-cache.json"),
        owner_id=None,
        logfire_token=None,
    )


@pytest.fixture
def test_client(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient]:
    """Test client with the application lifespan running against temporary storage."""
    monkeypatch.setattr("taskpulse.main.settings", test_settings)
    with TestClient(app) as client:
        yield client
