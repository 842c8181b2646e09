"""Tests for the channel-schedule command line."""

from datetime import date, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from channel_schedule import cli
from channel_schedule.core.config import BroadcastConfig, Config
from channel_schedule.domain.schedule import SlotStore


@pytest.fixture
def console() -> Console:
    """Recording console swapped in for the shared one."""
    recording = Console(record=True, width=200)
    with patch.object(cli, "get_console", return_value=recording):
        yield recording


@pytest.fixture
def store(tmp_path: Path) -> SlotStore:
    return SlotStore(
        db_path=tmp_path / "cli.db",
        config=BroadcastConfig(app_url="https://channel.test"),
    )


class TestRunWeek:
    """Tests for the week subcommand."""

    def test_lists_segments(self, console, store) -> None:
        """Test an overnight show prints on both days."""
        store.create_slot("Friday Late", datetime(2025, 1, 10, 22, 0), datetime(2025, 1, 11, 2, 0))

        assert cli.run_week(Config(), store, date(2025, 1, 8)) == 0

        output = console.export_text()
        assert "Week of Sun 05 Jan 2025" in output
        assert "22:00-24:00" in output
        assert "00:00-02:00" in output
        assert "Friday Late" in output

    def test_empty_week(self, console, store) -> None:
        """Test an empty week prints a notice."""
        assert cli.run_week(Config(), store, date(2025, 1, 8)) == 0
        assert "No shows scheduled" in console.export_text()


class TestRunUpcoming:
    """Tests for the upcoming subcommand."""

    def test_lists_future_shows(self, console, store) -> None:
        """Test upcoming shows print with their links."""
        store.create_slot("Later", datetime(2025, 1, 10, 22, 0), datetime(2025, 1, 11, 2, 0))

        assert cli.run_upcoming(store, now=datetime(2025, 1, 8, 12, 0)) == 0

        output = console.export_text()
        assert "Later" in output
        assert "https://channel.test/broadcast/venue" in output

    def test_nothing_upcoming(self, console, store) -> None:
        """Test an empty schedule prints a notice."""
        assert cli.run_upcoming(store, now=datetime(2025, 1, 8, 12, 0)) == 0
        assert "No upcoming shows" in console.export_text()


class TestMain:
    """Tests for argument parsing."""

    def test_no_subcommand_exits_nonzero(self) -> None:
        """Test running without a subcommand prints help and fails."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_invalid_date_rejected(self) -> None:
        """Test a malformed --date is an argparse error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["week", "--date", "next friday"])
        assert exc_info.value.code == 2

    def test_week_dispatch(self, tmp_path: Path) -> None:
        """Test the week subcommand opens the given database and runs."""
        with (
            patch.object(cli, "load_config", return_value=Config()),
            patch.object(cli, "setup_from_config"),
            patch.object(cli, "run_week", return_value=0) as run_week,
        ):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["--db", str(tmp_path / "x.db"), "week", "--date", "2025-01-08"])

        assert exc_info.value.code == 0
        _, store, day = run_week.call_args.args
        assert store.db_path == tmp_path / "x.db"
        assert day == date(2025, 1, 8)
