"""Tests for SQLite-backed slot persistence."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from channel_schedule.core.database import get_db_connection
from channel_schedule.domain.schedule.exceptions import (
    BroadcastEndedError,
    BroadcastTokenError,
    InvalidShowError,
    SlotNotFoundError,
)
from channel_schedule.domain.schedule.lineup import is_fully_covered
from channel_schedule.domain.schedule.models import DJSlot

START = datetime(2025, 1, 10, 22, 0)
END = datetime(2025, 1, 11, 2, 0)


class TestCreateSlot:
    """Tests for creating shows."""

    def test_create_sets_defaults(self, store) -> None:
        """Test a new show is scheduled, tokened, and readable back."""
        slot = store.create_slot("Friday Late", START, END)

        assert slot.status == "scheduled"
        assert slot.broadcast_type == "venue"
        assert slot.station_id == "channel-main"
        assert slot.venue_slug == "venue"
        assert slot.broadcast_token
        assert slot.token_expires_at == END + timedelta(minutes=60)
        assert slot.created_at == datetime(2025, 1, 8, 12, 0)
        assert store.get_slot(slot.id) == slot

    def test_tokens_are_unique(self, store) -> None:
        """Test every show gets its own token."""
        a = store.create_slot("A", START, END)
        b = store.create_slot("B", START + timedelta(days=1), END + timedelta(days=1))
        assert a.broadcast_token != b.broadcast_token

    def test_dj_slots_round_trip(self, store) -> None:
        """Test the DJ lineup survives storage."""
        lineup = [
            DJSlot(id="dj-1", start_time=START, end_time=START + timedelta(hours=2), dj_name="A"),
            DJSlot(id="dj-2", start_time=START + timedelta(hours=2), end_time=END),
        ]

        slot = store.create_slot("Lineup", START, END, dj_slots=lineup)

        assert store.get_slot(slot.id).dj_slots == lineup

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"show_name": "", "start_time": START, "end_time": END},
            {"show_name": "   ", "start_time": START, "end_time": END},
            {"show_name": "X", "start_time": END, "end_time": START},
            {"show_name": "X", "start_time": START, "end_time": START},
            {"show_name": "X", "start_time": START, "end_time": END, "broadcast_type": "tv"},
        ],
    )
    def test_invalid_shows_rejected(self, store, kwargs) -> None:
        """Test invalid input raises InvalidShowError and stores nothing."""
        with pytest.raises(InvalidShowError):
            store.create_slot(**kwargs)
        assert store.list_slots() == []


class TestUpdateAndDelete:
    """Tests for partial updates and deletes."""

    def test_update_end_moves_token_expiry(self, store) -> None:
        """Test resizing the end also moves the token expiry."""
        slot = store.create_slot("Show", START, END)
        new_end = END + timedelta(hours=1)

        updated = store.update_slot(slot.id, end_time=new_end)

        assert updated.end_time == new_end
        assert updated.start_time == START
        assert updated.token_expires_at == new_end + timedelta(minutes=60)

    def test_update_start_only(self, store) -> None:
        """Test a top-edge resize changes the start alone."""
        slot = store.create_slot("Show", START, END)

        updated = store.update_slot(slot.id, start_time=START - timedelta(minutes=30))

        assert updated.start_time == datetime(2025, 1, 10, 21, 30)
        assert updated.token_expires_at == slot.token_expires_at

    def test_update_cannot_invert_interval(self, store) -> None:
        """Test a start moved past the stored end is refused."""
        slot = store.create_slot("Show", START, END)
        with pytest.raises(InvalidShowError):
            store.update_slot(slot.id, start_time=END + timedelta(hours=1))

    def test_update_unknown_field(self, store) -> None:
        """Test unknown fields are refused."""
        slot = store.create_slot("Show", START, END)
        with pytest.raises(InvalidShowError):
            store.update_slot(slot.id, broadcast_token="stolen")

    def test_update_status(self, store) -> None:
        """Test status changes are validated and stored."""
        slot = store.create_slot("Show", START, END)

        assert store.update_slot(slot.id, status="live").is_live
        with pytest.raises(InvalidShowError):
            store.update_slot(slot.id, status="on-air")

    def test_update_missing_slot(self, store) -> None:
        """Test updating an unknown ID raises SlotNotFoundError."""
        with pytest.raises(SlotNotFoundError) as exc_info:
            store.update_slot("missing", show_name="X")
        assert exc_info.value.slot_id == "missing"
        assert str(exc_info.value) == "Broadcast slot not found: missing"
        assert str(SlotNotFoundError("missing", "Gone")) == "Gone"

    def test_delete(self, store) -> None:
        """Test deleting removes the show."""
        slot = store.create_slot("Show", START, END)

        store.delete_slot(slot.id)

        assert store.get_slot(slot.id) is None
        with pytest.raises(SlotNotFoundError):
            store.delete_slot(slot.id)


class TestListing:
    """Tests for list queries."""

    def test_list_slots_newest_first(self, store) -> None:
        """Test list_slots orders by start descending."""
        early = store.create_slot("Early", START, END)
        late = store.create_slot("Late", START + timedelta(days=2), END + timedelta(days=2))

        assert [s.id for s in store.list_slots()] == [late.id, early.id]

    def test_list_upcoming_skips_ended(self, store) -> None:
        """Test shows that already ended are not upcoming."""
        store.create_slot("Past", datetime(2025, 1, 7, 10, 0), datetime(2025, 1, 7, 12, 0))
        running = store.create_slot(
            "Running", datetime(2025, 1, 8, 11, 0), datetime(2025, 1, 8, 13, 0)
        )
        future = store.create_slot("Future", START, END)

        upcoming = store.list_upcoming(datetime(2025, 1, 8, 12, 0))

        assert [s.id for s in upcoming] == [running.id, future.id]

    def test_list_in_range_includes_overlaps(self, store) -> None:
        """Test shows crossing the range edges are included."""
        crossing = store.create_slot(
            "Crossing", datetime(2025, 1, 4, 22, 0), datetime(2025, 1, 5, 2, 0)
        )
        store.create_slot("Before", datetime(2025, 1, 4, 10, 0), datetime(2025, 1, 4, 12, 0))

        found = store.list_in_range(datetime(2025, 1, 5), datetime(2025, 1, 12))

        assert [s.id for s in found] == [crossing.id]


class TestSubscribe:
    """Tests for change notifications."""

    def test_listener_sees_each_write(self, store) -> None:
        """Test created, updated, and deleted events in order."""
        listener = MagicMock()
        store.subscribe(listener)

        slot = store.create_slot("Show", START, END)
        store.update_slot(slot.id, show_name="Renamed")
        store.delete_slot(slot.id)

        assert [c.args for c in listener.call_args_list] == [
            ("created", slot.id),
            ("updated", slot.id),
            ("deleted", slot.id),
        ]

    def test_unsubscribe(self, store) -> None:
        """Test an unsubscribed listener hears nothing further."""
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)

        unsubscribe()
        store.create_slot("Show", START, END)

        listener.assert_not_called()

    def test_failed_write_not_notified(self, store) -> None:
        """Test rejected writes do not notify."""
        listener = MagicMock()
        store.subscribe(listener)

        with pytest.raises(SlotNotFoundError):
            store.delete_slot("missing")

        listener.assert_not_called()


class TestValidateToken:
    """Tests for remote DJ token checks."""

    @pytest.fixture
    def remote_slot(self, store):
        return store.create_slot(
            "Remote", START, END, broadcast_type="remote", dj_name="Guest"
        )

    def test_unknown_token(self, store) -> None:
        """Test an unknown token is invalid."""
        result = store.validate_token("nope", now=START)
        assert not result.valid
        assert result.error == "Invalid token"

    def test_early(self, store, remote_slot) -> None:
        """Test joining more than 15 minutes ahead is early."""
        result = store.validate_token(
            remote_slot.broadcast_token, now=START - timedelta(minutes=30)
        )
        assert result.valid
        assert result.schedule_status == "early"
        assert result.slot.id == remote_slot.id

    def test_on_time(self, store, remote_slot) -> None:
        """Test joining within the early window is on time."""
        result = store.validate_token(
            remote_slot.broadcast_token, now=START - timedelta(minutes=10)
        )
        assert result.schedule_status == "on-time"

    def test_late(self, store, remote_slot) -> None:
        """Test joining after the start is late."""
        result = store.validate_token(
            remote_slot.broadcast_token, now=START + timedelta(hours=1)
        )
        assert result.schedule_status == "late"

    def test_expired(self, store, remote_slot) -> None:
        """Test tokens stop working an hour after the show ends."""
        result = store.validate_token(
            remote_slot.broadcast_token, now=END + timedelta(minutes=61)
        )
        assert not result.valid
        assert result.error == "Token has expired"

    def test_completed_show(self, store, remote_slot) -> None:
        """Test a completed show's token is refused."""
        store.update_slot(remote_slot.id, status="completed")

        result = store.validate_token(remote_slot.broadcast_token, now=START)

        assert not result.valid
        assert result.error == "This broadcast slot has ended"


class TestVenueSlots:
    """Tests for the venue now/next lookup."""

    def test_current_and_next(self, store) -> None:
        """Test remote shows are skipped and now/next are found."""
        now = datetime(2025, 1, 10, 23, 0)
        current = store.create_slot("Current", START, END)
        store.create_slot(
            "Remote",
            datetime(2025, 1, 11, 3, 0),
            datetime(2025, 1, 11, 4, 0),
            broadcast_type="remote",
        )
        upcoming = store.create_slot(
            "Next", datetime(2025, 1, 11, 20, 0), datetime(2025, 1, 11, 23, 0)
        )

        venue = store.get_venue_slots(now)

        assert venue.current.id == current.id
        assert venue.next.id == upcoming.id

    def test_legacy_rows_count_as_venue(self, store) -> None:
        """Test rows without a broadcast type are treated as venue shows."""
        slot = store.create_slot("Legacy", START, END)
        with get_db_connection(store.db_path) as conn:
            conn.execute(
                "UPDATE broadcast_slots SET broadcast_type = NULL WHERE id = ?", (slot.id,)
            )
            conn.commit()

        assert store.get_slot(slot.id).broadcast_type == "venue"
        assert store.get_venue_slots(START + timedelta(hours=1)).current.id == slot.id

    def test_nothing_scheduled(self, store) -> None:
        """Test an empty schedule has no current or next show."""
        venue = store.get_venue_slots(START)
        assert venue.current is None
        assert venue.next is None


class TestBroadcastUrl:
    """Tests for broadcast links."""

    def test_venue_link(self, store) -> None:
        """Test venue shows use the venue's permanent link."""
        slot = store.create_slot("Venue", START, END, venue_slug="the-club")
        assert store.broadcast_url(slot) == "https://channel.test/broadcast/the-club"

    def test_remote_link(self, store) -> None:
        """Test remote shows use a token link."""
        slot = store.create_slot("Remote", START, END, broadcast_type="remote")
        assert store.broadcast_url(slot) == (
            f"https://channel.test/broadcast/live?token={slot.broadcast_token}"
        )


def _dj(slot_id: str, start: datetime, end: datetime, name: str) -> DJSlot:
    return DJSlot(id=slot_id, start_time=start, end_time=end, dj_name=name)


class TestLineupFitsShow:
    """Tests for keeping saved venue lineups inside their show."""

    def test_create_clamps_lineup(self, store) -> None:
        """Test a DJ running past both show edges is cut to the show."""
        start, end = datetime(2025, 1, 10, 19, 0), datetime(2025, 1, 10, 21, 0)

        slot = store.create_slot(
            "Club",
            start,
            end,
            dj_slots=[_dj("a", datetime(2025, 1, 10, 17, 10), datetime(2025, 1, 10, 23, 0), "A")],
        )

        [dj] = store.get_slot(slot.id).dj_slots
        assert (dj.id, dj.start_time, dj.end_time) == ("a", start, end)

    def test_create_fills_gaps(self, store) -> None:
        """Test a partial lineup is gap-filled across the show."""
        slot = store.create_slot(
            "Club",
            START,
            END,
            dj_slots=[_dj("a", START, START + timedelta(hours=1), "A")],
        )

        assert len(slot.dj_slots) == 2
        assert slot.dj_slots[1].is_filler
        assert is_fully_covered(slot.dj_slots, START, END)

    def test_resize_extends_lineup(self, store) -> None:
        """Test moving the end past the last DJ adds a filler up to it."""
        start = datetime(2025, 1, 10, 19, 0)
        slot = store.create_slot(
            "Club",
            start,
            datetime(2025, 1, 10, 21, 0),
            dj_slots=[
                _dj("a", start, datetime(2025, 1, 10, 20, 0), "A"),
                _dj("b", datetime(2025, 1, 10, 20, 0), datetime(2025, 1, 10, 21, 0), "B"),
            ],
        )
        new_end = datetime(2025, 1, 10, 22, 0)

        updated = store.update_slot(slot.id, end_time=new_end)

        assert [dj.id for dj in updated.dj_slots[:2]] == ["a", "b"]
        assert updated.dj_slots[2].is_filler
        assert is_fully_covered(updated.dj_slots, start, new_end)

    def test_resize_shrinks_lineup(self, store) -> None:
        """Test moving the start later trims the first DJ."""
        start = datetime(2025, 1, 10, 19, 0)
        slot = store.create_slot(
            "Club",
            start,
            datetime(2025, 1, 10, 21, 0),
            dj_slots=[
                _dj("a", start, datetime(2025, 1, 10, 20, 0), "A"),
                _dj("b", datetime(2025, 1, 10, 20, 0), datetime(2025, 1, 10, 21, 0), "B"),
            ],
        )
        new_start = datetime(2025, 1, 10, 19, 30)

        updated = store.update_slot(slot.id, start_time=new_start)

        assert updated.dj_slots[0].start_time == new_start
        assert is_fully_covered(updated.dj_slots, new_start, updated.end_time)

    def test_update_lineup_is_retiled(self, store) -> None:
        """Test a replacement lineup is clamped to the stored show."""
        slot = store.create_slot("Club", START, END)

        updated = store.update_slot(
            slot.id,
            dj_slots=[_dj("a", START - timedelta(hours=2), END + timedelta(hours=2), "A")],
        )

        [dj] = updated.dj_slots
        assert (dj.start_time, dj.end_time) == (START, END)

    def test_remote_lineup_untouched(self, store) -> None:
        """Test remote shows are not given fillers."""
        slot = store.create_slot("Remote", START, END, broadcast_type="remote", dj_name="Guest")

        updated = store.update_slot(slot.id, end_time=END + timedelta(hours=1))

        assert updated.dj_slots == []


class TestLifecycle:
    """Tests for moving shows through their broadcast statuses."""

    @pytest.fixture
    def remote_slot(self, store):
        return store.create_slot(
            "Remote", START, END, broadcast_type="remote", dj_name="Guest"
        )

    def test_go_live(self, store, remote_slot) -> None:
        """Test a valid token marks the show live and records the DJ."""
        slot = store.go_live(remote_slot.broadcast_token, dj_name="Guest", now=START)

        assert slot.is_live
        assert slot.live_dj_name == "Guest"
        assert store.get_slot(remote_slot.id).live_dj_name == "Guest"

    def test_go_live_unknown_token(self, store) -> None:
        """Test an unknown token raises BroadcastTokenError."""
        with pytest.raises(BroadcastTokenError):
            store.go_live("nope", now=START)

    def test_go_live_expired(self, store, remote_slot) -> None:
        """Test an expired token raises BroadcastEndedError."""
        with pytest.raises(BroadcastEndedError):
            store.go_live(remote_slot.broadcast_token, now=END + timedelta(hours=2))

    def test_go_live_after_missed(self, store, remote_slot) -> None:
        """Test a missed show cannot go live."""
        store.update_slot(remote_slot.id, status="missed")
        with pytest.raises(BroadcastEndedError):
            store.go_live(remote_slot.broadcast_token, now=START)

    def test_pause_live_only(self, store, remote_slot) -> None:
        """Test only live shows are paused."""
        assert store.pause_slot(remote_slot.id).status == "scheduled"

        store.go_live(remote_slot.broadcast_token, now=START)

        assert store.pause_slot(remote_slot.id).status == "paused"

    def test_pause_missing(self, store) -> None:
        """Test pausing an unknown ID raises SlotNotFoundError."""
        with pytest.raises(SlotNotFoundError):
            store.pause_slot("missing")

    def test_complete_before_end_refused(self, store, remote_slot) -> None:
        """Test completing a running show without force is refused."""
        with pytest.raises(InvalidShowError):
            store.complete_slot(remote_slot.id, now=START + timedelta(hours=1))

    def test_forced_early_stop_pauses(self, store, remote_slot) -> None:
        """Test a DJ stopping early leaves the show paused."""
        store.go_live(remote_slot.broadcast_token, now=START)

        slot = store.complete_slot(
            remote_slot.id, force=True, now=START + timedelta(hours=1)
        )

        assert slot.status == "paused"

    def test_complete_after_end(self, store, remote_slot) -> None:
        """Test a show that went live ends completed."""
        store.go_live(remote_slot.broadcast_token, now=START)

        slot = store.complete_slot(remote_slot.id, now=END + timedelta(minutes=1))

        assert slot.status == "completed"

    def test_complete_never_live_is_missed(self, store, remote_slot) -> None:
        """Test a show that never went live ends missed."""
        slot = store.complete_slot(remote_slot.id, now=END + timedelta(minutes=1))
        assert slot.status == "missed"

    def test_complete_expired(self, store) -> None:
        """Test ended shows are closed out and running ones are left alone."""
        now = datetime(2025, 1, 11, 3, 0)
        aired = store.create_slot("Aired", START, END)
        store.update_slot(aired.id, status="paused")
        never = store.create_slot(
            "Never", datetime(2025, 1, 10, 18, 0), datetime(2025, 1, 10, 20, 0)
        )
        running = store.create_slot(
            "Running", datetime(2025, 1, 11, 2, 0), datetime(2025, 1, 11, 4, 0)
        )

        assert store.complete_expired(now) == (1, 1)

        assert store.get_slot(aired.id).status == "completed"
        assert store.get_slot(never.id).status == "missed"
        assert store.get_slot(running.id).status == "scheduled"
        assert store.complete_expired(now) == (0, 0)
