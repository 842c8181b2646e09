"""Pytest configuration for backend tests.

Routes every request to a slot store on a temporary database.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from channel_schedule.core.config import BroadcastConfig, Config
from channel_schedule.domain.schedule import SlotStore
from web.backend.deps import get_config, get_store
from web.backend.main import app


@pytest.fixture
def store(tmp_path: Path) -> SlotStore:
    return SlotStore(
        db_path=tmp_path / "api.db",
        config=BroadcastConfig(app_url="https://channel.test"),
    )


@pytest.fixture
def client(store: SlotStore):
    """TestClient with the store and config dependencies overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: Config()
    yield TestClient(app)
    app.dependency_overrides.clear()
