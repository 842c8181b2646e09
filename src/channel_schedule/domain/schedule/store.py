"""
Broadcast slot persistence.

SlotStore is the document store the calendar reads from and writes to:
one row per show, keyed by slot ID, with the DJ lineup stored as JSON.
Listeners registered with subscribe() hear about every committed write.
"""

import json
import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Literal, Optional

from loguru import logger

from channel_schedule.core.config import BroadcastConfig
from channel_schedule.core.database import get_db_connection, init_database

from .exceptions import (
    BroadcastEndedError,
    BroadcastTokenError,
    InvalidShowError,
    SlotNotFoundError,
    SlotStoreError,
)
from .lineup import retile
from .models import (
    BROADCAST_TYPES,
    ENDED_STATUSES,
    RECORDING_STATUSES,
    SLOT_STATUSES,
    BroadcastSlot,
    DJSlot,
)

ChangeKind = Literal["created", "updated", "deleted"]
ChangeListener = Callable[[ChangeKind, str], None]

ScheduleStatus = Literal["early", "on-time", "late"]

UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "show_name",
        "dj_name",
        "dj_slots",
        "start_time",
        "end_time",
        "recording_url",
        "recording_status",
        "recording_duration",
        "live_dj_name",
    }
)

# Statuses a show can still leave once its end time has passed
OPEN_STATUSES = ("scheduled", "live", "paused")


@dataclass(frozen=True)
class TokenValidation:
    """Outcome of checking a remote DJ's broadcast token."""

    valid: bool
    slot: Optional[BroadcastSlot] = None
    schedule_status: Optional[ScheduleStatus] = None
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class VenueSlots:
    """The venue show on air now and the next one coming up."""

    current: Optional[BroadcastSlot]
    next: Optional[BroadcastSlot]


def generate_token() -> str:
    """URL-safe random broadcast token (24 random bytes)."""
    return secrets.token_urlsafe(24)


def validate_interval(start_time: datetime, end_time: datetime) -> None:
    """Raise InvalidShowError unless end is strictly after start."""
    if end_time <= start_time:
        raise InvalidShowError(
            f"Show must end after it starts ({start_time.isoformat()} >= {end_time.isoformat()})"
        )


def _dj_slots_to_json(dj_slots: Optional[list[DJSlot]]) -> Optional[str]:
    if not dj_slots:
        return None
    return json.dumps(
        [
            {
                "id": dj.id,
                "dj_name": dj.dj_name,
                "start_time": dj.start_time.isoformat(),
                "end_time": dj.end_time.isoformat(),
            }
            for dj in dj_slots
        ]
    )


def _dj_slots_from_json(raw: Optional[str]) -> list[DJSlot]:
    if not raw:
        return []
    return [
        DJSlot(
            id=item["id"],
            dj_name=item.get("dj_name") or None,
            start_time=datetime.fromisoformat(item["start_time"]),
            end_time=datetime.fromisoformat(item["end_time"]),
        )
        for item in json.loads(raw)
    ]


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_slot(row: dict[str, Any]) -> BroadcastSlot:
    """Convert database row to BroadcastSlot dataclass."""
    return BroadcastSlot(
        id=row["id"],
        station_id=row["station_id"],
        show_name=row["show_name"],
        dj_name=row["dj_name"],
        dj_slots=_dj_slots_from_json(row["dj_slots"]),
        start_time=datetime.fromisoformat(row["start_time"]),
        end_time=datetime.fromisoformat(row["end_time"]),
        broadcast_token=row["broadcast_token"],
        token_expires_at=_parse_dt(row["token_expires_at"]),
        created_at=_parse_dt(row["created_at"]),
        created_by=row["created_by"] or "",
        status=row["status"],
        # Legacy rows predate the type column and are all venue shows
        broadcast_type=row["broadcast_type"] or "venue",
        venue_slug=row["venue_slug"],
        live_dj_name=row["live_dj_name"],
        recording_url=row["recording_url"],
        recording_status=row["recording_status"],
        recording_duration=row["recording_duration"],
    )


class SlotStore:
    """SQLite-backed store of broadcast slots for one station."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        config: Optional[BroadcastConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = db_path
        self.config = config or BroadcastConfig()
        self._clock = clock
        self._listeners: list[ChangeListener] = []
        init_database(db_path)

    # === Change notifications ===

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, slot_id: str) -> None:
        for listener in list(self._listeners):
            listener(kind, slot_id)

    # === Writes ===

    def _execute_write(self, query: str, params: tuple) -> int:
        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.execute(query, params)
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Slot store write failed: {e}")
            raise SlotStoreError(str(e)) from e

    def create_slot(
        self,
        show_name: str,
        start_time: datetime,
        end_time: datetime,
        broadcast_type: str = "venue",
        dj_name: Optional[str] = None,
        dj_slots: Optional[list[DJSlot]] = None,
        created_by: str = "",
        venue_slug: Optional[str] = None,
    ) -> BroadcastSlot:
        """Create a scheduled show.

        Args:
            show_name: Show title (required)
            start_time: Scheduled start
            end_time: Scheduled end (may be on a later date)
            broadcast_type: 'venue' or 'remote'
            dj_name: Single DJ for remote broadcasts
            dj_slots: DJ lineup for venue broadcasts, retiled to fit the show
            created_by: Owner's user ID
            venue_slug: Venue used for the permanent venue broadcast link

        Returns:
            The created BroadcastSlot

        Raises:
            InvalidShowError: If the name is empty, the type unknown, or end <= start
            SlotStoreError: If the write fails
        """
        if not show_name or not show_name.strip():
            raise InvalidShowError("Show name is required")
        if broadcast_type not in BROADCAST_TYPES:
            raise InvalidShowError(f"Unknown broadcast type: '{broadcast_type}'")
        validate_interval(start_time, end_time)
        if broadcast_type == "venue" and dj_slots:
            dj_slots = retile(dj_slots, start_time, end_time)

        slot = BroadcastSlot(
            id=uuid.uuid4().hex,
            station_id=self.config.station_id,
            show_name=show_name.strip(),
            dj_name=dj_name or None,
            dj_slots=list(dj_slots or []),
            start_time=start_time,
            end_time=end_time,
            broadcast_token=generate_token(),
            token_expires_at=self._token_expiry(end_time),
            created_at=self._clock().replace(microsecond=0),
            created_by=created_by,
            status="scheduled",
            broadcast_type=broadcast_type,
            venue_slug=venue_slug or self.config.default_venue_slug,
        )

        self._execute_write(
            """
            INSERT INTO broadcast_slots (
                id, station_id, show_name, dj_name, dj_slots, start_time, end_time,
                broadcast_token, token_expires_at, created_at, created_by, status,
                broadcast_type, venue_slug
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                slot.id,
                slot.station_id,
                slot.show_name,
                slot.dj_name,
                _dj_slots_to_json(slot.dj_slots),
                slot.start_time.isoformat(),
                slot.end_time.isoformat(),
                slot.broadcast_token,
                slot.token_expires_at.isoformat(),
                slot.created_at.isoformat(),
                slot.created_by,
                slot.status,
                slot.broadcast_type,
                slot.venue_slug,
            ),
        )
        logger.info(
            f"Created slot {slot.id} '{slot.show_name}' "
            f"{slot.start_time:%Y-%m-%d %H:%M} - {slot.end_time:%Y-%m-%d %H:%M} ({broadcast_type})"
        )
        self._notify("created", slot.id)
        return slot

    def update_slot(self, slot_id: str, **updates: Any) -> BroadcastSlot:
        """Apply a partial update to a slot.

        Moving the end also moves the token expiry. The resulting interval is
        validated against the stored one, so a resize that only sends one
        boundary cannot invert the show. A venue lineup is retiled to the
        resulting interval whenever it or either boundary changes.

        Returns:
            The updated BroadcastSlot

        Raises:
            InvalidShowError: For unknown fields or values, or end <= start
            SlotNotFoundError: If the slot does not exist
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidShowError(f"Cannot update fields: {sorted(unknown)}")

        existing = self.get_slot(slot_id)
        if existing is None:
            logger.warning(f"Update of unknown slot {slot_id}")
            raise SlotNotFoundError(slot_id)

        if not updates:
            return existing  # Nothing to update

        if "status" in updates and updates["status"] not in SLOT_STATUSES:
            raise InvalidShowError(f"Unknown slot status: '{updates['status']}'")
        if (
            updates.get("recording_status") is not None
            and updates["recording_status"] not in RECORDING_STATUSES
        ):
            raise InvalidShowError(
                f"Unknown recording status: '{updates['recording_status']}'"
            )
        if "show_name" in updates and not (updates["show_name"] or "").strip():
            raise InvalidShowError("Show name is required")

        start_time = updates.get("start_time", existing.start_time)
        end_time = updates.get("end_time", existing.end_time)
        validate_interval(start_time, end_time)

        if existing.broadcast_type == "venue":
            lineup = updates.get("dj_slots", existing.dj_slots)
            moved = "start_time" in updates or "end_time" in updates
            if lineup and ("dj_slots" in updates or moved):
                updates["dj_slots"] = retile(lineup, start_time, end_time)

        columns: list[str] = []
        params: list[Any] = []

        for name, value in updates.items():
            if name in ("start_time", "end_time"):
                value = value.isoformat()
            elif name == "dj_slots":
                value = _dj_slots_to_json(value)
            elif name == "dj_name":
                value = value or None
            columns.append(f"{name} = ?")
            params.append(value)

        if "end_time" in updates:
            columns.append("token_expires_at = ?")
            params.append(self._token_expiry(updates["end_time"]).isoformat())

        params.append(slot_id)
        rowcount = self._execute_write(
            f"UPDATE broadcast_slots SET {', '.join(columns)} WHERE id = ?",
            tuple(params),
        )
        if rowcount == 0:
            raise SlotNotFoundError(slot_id)

        logger.info(f"Updated slot {slot_id}: {', '.join(sorted(updates))}")
        self._notify("updated", slot_id)
        return self.get_slot(slot_id)

    def delete_slot(self, slot_id: str) -> None:
        """Delete a slot.

        Raises:
            SlotNotFoundError: If the slot does not exist
        """
        rowcount = self._execute_write(
            "DELETE FROM broadcast_slots WHERE id = ?", (slot_id,)
        )
        if rowcount == 0:
            logger.warning(f"Delete of unknown slot {slot_id}")
            raise SlotNotFoundError(slot_id)
        logger.info(f"Deleted slot {slot_id}")
        self._notify("deleted", slot_id)

    # === Reads ===

    def _query(self, query: str, params: tuple = ()) -> list[BroadcastSlot]:
        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.execute(query, params)
                return [_row_to_slot(dict(row)) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Slot store read failed: {e}")
            raise SlotStoreError(str(e)) from e

    def get_slot(self, slot_id: str) -> Optional[BroadcastSlot]:
        """Get a slot by ID, or None if not found."""
        rows = self._query("SELECT * FROM broadcast_slots WHERE id = ?", (slot_id,))
        return rows[0] if rows else None

    def get_slot_by_token(self, token: str) -> Optional[BroadcastSlot]:
        rows = self._query(
            "SELECT * FROM broadcast_slots WHERE broadcast_token = ?", (token,)
        )
        return rows[0] if rows else None

    def list_slots(self, station_id: Optional[str] = None) -> list[BroadcastSlot]:
        """All slots for a station, newest start first."""
        return self._query(
            "SELECT * FROM broadcast_slots WHERE station_id = ? ORDER BY start_time DESC",
            (station_id or self.config.station_id,),
        )

    def list_upcoming(self, now: Optional[datetime] = None) -> list[BroadcastSlot]:
        """Slots that have not ended yet, earliest start first."""
        now = now or self._clock()
        return self._query(
            """
            SELECT * FROM broadcast_slots
            WHERE station_id = ? AND end_time > ?
            ORDER BY start_time ASC
            """,
            (self.config.station_id, now.isoformat()),
        )

    def list_in_range(self, start: datetime, end: datetime) -> list[BroadcastSlot]:
        """Slots overlapping [start, end), earliest start first."""
        return self._query(
            """
            SELECT * FROM broadcast_slots
            WHERE station_id = ? AND start_time < ? AND end_time > ?
            ORDER BY start_time ASC
            """,
            (self.config.station_id, end.isoformat(), start.isoformat()),
        )

    # === Broadcast links ===

    def _token_expiry(self, end_time: datetime) -> datetime:
        return end_time + timedelta(minutes=self.config.token_expiry_buffer_minutes)

    def broadcast_url(self, slot: BroadcastSlot) -> str:
        """Venue shows use the venue's permanent link; remote shows a token link."""
        base = self.config.app_url.rstrip("/")
        if slot.is_remote:
            return f"{base}/broadcast/live?token={slot.broadcast_token}"
        return f"{base}/broadcast/{slot.venue_slug or self.config.default_venue_slug}"

    def validate_token(
        self, token: str, now: Optional[datetime] = None
    ) -> TokenValidation:
        """Check a remote DJ's broadcast token and how punctual they are.

        'early' means more than the early window before start, 'late' means
        the show is already running, anything else is 'on-time'.
        """
        now = now or self._clock()
        slot = self.get_slot_by_token(token)

        if slot is None:
            logger.warning("Broadcast token rejected: unknown token")
            return TokenValidation(valid=False, error="Invalid token")

        if slot.token_expires_at and slot.token_expires_at < now:
            logger.warning(f"Broadcast token rejected: expired for slot {slot.id}")
            return TokenValidation(valid=False, error="Token has expired")

        if slot.status in ENDED_STATUSES:
            return TokenValidation(valid=False, error="This broadcast slot has ended")

        early_window = timedelta(minutes=self.config.early_window_minutes)
        if now < slot.start_time - early_window:
            return TokenValidation(
                valid=True,
                slot=slot,
                schedule_status="early",
                message=f"Your show starts at {slot.start_time:%H:%M}",
            )
        if slot.start_time < now < slot.end_time:
            return TokenValidation(
                valid=True,
                slot=slot,
                schedule_status="late",
                message=f"Your show started at {slot.start_time:%H:%M}",
            )
        return TokenValidation(
            valid=True,
            slot=slot,
            schedule_status="on-time",
            message="You are on schedule",
        )

    def get_venue_slots(self, now: Optional[datetime] = None) -> VenueSlots:
        """The venue show on air now and the next venue show after now."""
        now = now or self._clock()
        venue = sorted(
            (slot for slot in self.list_slots() if slot.broadcast_type == "venue"),
            key=lambda s: s.start_time,
        )

        current = next(
            (s for s in venue if s.start_time <= now < s.end_time), None
        )
        upcoming = next((s for s in venue if s.start_time > now), None)
        return VenueSlots(current=current, next=upcoming)

    # === Broadcast lifecycle ===

    def go_live(
        self, token: str, dj_name: Optional[str] = None, now: Optional[datetime] = None
    ) -> BroadcastSlot:
        """Mark the show behind a broadcast token as live.

        Args:
            token: The show's broadcast token
            dj_name: DJ going live, recorded on the show when given
            now: Current time (defaults to the store clock)

        Raises:
            BroadcastTokenError: If no show has this token
            BroadcastEndedError: If the token expired or the show already ended
        """
        now = now or self._clock()
        slot = self.get_slot_by_token(token)

        if slot is None:
            logger.warning("Go-live rejected: unknown token")
            raise BroadcastTokenError("Invalid broadcast token")
        if slot.token_expires_at and slot.token_expires_at < now:
            logger.warning(f"Go-live rejected: token expired for slot {slot.id}")
            raise BroadcastEndedError("Token has expired")
        if slot.status in ENDED_STATUSES:
            logger.warning(f"Go-live rejected: slot {slot.id} is {slot.status}")
            raise BroadcastEndedError("This broadcast slot has ended")

        updates: dict[str, Any] = {"status": "live"}
        if dj_name:
            updates["live_dj_name"] = dj_name
        return self.update_slot(slot.id, **updates)

    def pause_slot(self, slot_id: str) -> BroadcastSlot:
        """Pause a live show; shows in any other status are left alone."""
        slot = self.get_slot(slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)
        if slot.status != "live":
            logger.debug(f"Not pausing slot {slot_id}: status is {slot.status}")
            return slot
        return self.update_slot(slot_id, status="paused")

    def complete_slot(
        self, slot_id: str, force: bool = False, now: Optional[datetime] = None
    ) -> BroadcastSlot:
        """Settle a show's status when it ends, or when its DJ stops early.

        After the end, live and paused shows become completed and shows that
        never went live become missed. With force before the end, a live or
        paused show is paused so the DJ can resume.

        Raises:
            SlotNotFoundError: If the slot does not exist
            InvalidShowError: If the show has not ended and force is not set
        """
        now = now or self._clock()
        slot = self.get_slot(slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)

        ended = now > slot.end_time
        if not force and not ended:
            raise InvalidShowError("Slot has not ended yet")

        if slot.status in ("live", "paused"):
            new_status = "completed" if ended else "paused"
        elif slot.status == "scheduled" and ended:
            new_status = "missed"
        else:
            return slot

        if new_status == slot.status:
            return slot
        logger.info(f"Slot {slot_id} marked as {new_status}")
        return self.update_slot(slot_id, status=new_status)

    def complete_expired(self, now: Optional[datetime] = None) -> tuple[int, int]:
        """Close out every show whose end has passed.

        Returns:
            (completed, missed) counts
        """
        now = now or self._clock()
        placeholders = ", ".join("?" for _ in OPEN_STATUSES)
        expired = self._query(
            f"""
            SELECT * FROM broadcast_slots
            WHERE station_id = ? AND end_time < ? AND status IN ({placeholders})
            ORDER BY start_time ASC
            """,
            (self.config.station_id, now.isoformat(), *OPEN_STATUSES),
        )

        completed = missed = 0
        for slot in expired:
            if slot.status == "scheduled":
                self.update_slot(slot.id, status="missed")
                missed += 1
            else:
                self.update_slot(slot.id, status="completed")
                completed += 1

        if expired:
            logger.info(f"Closed expired slots: {completed} completed, {missed} missed")
        return completed, missed
