"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["JWT_SECRET_KEY"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET_KEY"] = "test-refresh-secret"
os.environ["MONGODB_URL"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB_NAME"] = "vidtube_test"
os.environ["SEARCH_RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_TEMP_DIR"] = tempfile.mkdtemp(prefix="vidtube-uploads-")
os.environ["LOG_LEVEL"] = "WARNING"

from fakes import FakeAssetStore, FakeStore, make_user  # noqa: E402


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def assets() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def alice(store: FakeStore) -> dict:
    return make_user(store, "alice")


@pytest.fixture
def bob(store: FakeStore) -> dict:
    return make_user(store, "bob")


@pytest.fixture
def test_client(store: FakeStore, assets: FakeAssetStore) -> Generator[TestClient, None, None]:
    """Test client with the store and asset host replaced by fakes (no lifespan, no Mongo)."""
    from vidtube.core.asset_store import get_asset_store
    from vidtube.core.database import get_store
    from vidtube.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_asset_store] = lambda: assets
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Per-test temp directory for multipart uploads."""
    from vidtube.core.config import settings

    directory = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_temp_dir", str(directory))
    return directory
