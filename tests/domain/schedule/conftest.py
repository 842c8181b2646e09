"""Shared fixtures for schedule domain tests."""

from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from channel_schedule.core.config import BroadcastConfig
from channel_schedule.domain.schedule.models import BroadcastSlot, WeekWindow
from channel_schedule.domain.schedule.store import SlotStore

# Sunday 5 Jan 2025 - Saturday 11 Jan 2025
WEEK_START = datetime(2025, 1, 5)


@pytest.fixture
def week() -> WeekWindow:
    """The visible week used across schedule tests."""
    return WeekWindow(WEEK_START)


@pytest.fixture
def make_slot() -> Callable[..., BroadcastSlot]:
    """Factory for shows with sensible defaults."""

    def _make(
        start_time: datetime,
        end_time: datetime,
        slot_id: str = "slot-1",
        **kwargs,
    ) -> BroadcastSlot:
        kwargs.setdefault("show_name", "Test Show")
        return BroadcastSlot(
            id=slot_id, start_time=start_time, end_time=end_time, **kwargs
        )

    return _make


@pytest.fixture
def store(tmp_path: Path) -> SlotStore:
    """Slot store on a throwaway SQLite database."""
    return SlotStore(
        db_path=tmp_path / "slots.db",
        config=BroadcastConfig(app_url="https://channel.test"),
        clock=lambda: datetime(2025, 1, 8, 12, 0),
    )
