"""
Schedule domain models.

Contains data structures for broadcast slots (shows), their DJ lineups,
and the derived per-day display segments of the weekly calendar.

All datetimes are naive local wall-clock times (the viewer's timezone).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Literal, Optional

BroadcastType = Literal["venue", "remote"]
SlotStatus = Literal["scheduled", "live", "paused", "completed", "missed"]
RecordingStatus = Literal["recording", "processing", "ready", "failed"]
ResizeEdge = Literal["top", "bottom"]

BROADCAST_TYPES: frozenset[str] = frozenset({"venue", "remote"})
SLOT_STATUSES: frozenset[str] = frozenset(
    {"scheduled", "live", "paused", "completed", "missed"}
)
RECORDING_STATUSES: frozenset[str] = frozenset(
    {"recording", "processing", "ready", "failed"}
)
ENDED_STATUSES: frozenset[str] = frozenset({"completed", "missed"})

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class DJSlot:
    """A DJ's time range within a venue show.

    An unnamed slot is a placeholder covering time nobody is booked for yet.
    """

    id: str
    start_time: datetime
    end_time: datetime
    dj_name: Optional[str] = None

    @property
    def is_filler(self) -> bool:
        return not self.dj_name


@dataclass(frozen=True)
class BroadcastSlot:
    """Represents a scheduled show on the station.

    Venue shows are split into DJ slots; remote shows carry a single DJ name.
    The end may fall on a later calendar date than the start (overnight show).
    """

    id: str
    show_name: str
    start_time: datetime
    end_time: datetime
    broadcast_type: BroadcastType = "venue"
    status: SlotStatus = "scheduled"
    dj_name: Optional[str] = None  # Remote broadcasts only
    dj_slots: list[DJSlot] = field(default_factory=list)  # Venue broadcasts only
    station_id: str = "channel-main"
    broadcast_token: str = ""
    token_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: str = ""
    venue_slug: Optional[str] = None
    live_dj_name: Optional[str] = None  # Who went live on the broadcast token
    recording_url: Optional[str] = None
    recording_status: Optional[RecordingStatus] = None
    recording_duration: Optional[float] = None  # seconds

    @property
    def is_overnight(self) -> bool:
        return self.end_time.date() > self.start_time.date()

    @property
    def is_remote(self) -> bool:
        return self.broadcast_type == "remote"

    @property
    def is_live(self) -> bool:
        return self.status == "live"

    def has_ended(self, now: datetime) -> bool:
        return self.end_time < now

    def dj_display(self) -> Optional[str]:
        """Comma-joined DJ names for calendar labels, or None if nobody is booked."""
        if self.dj_slots:
            names = [dj.dj_name for dj in self.dj_slots if dj.dj_name]
            return ", ".join(names) or None
        return self.dj_name or None


@dataclass(frozen=True)
class SlotSegment:
    """The part of a show that falls on one day of the visible week.

    Derived on every render; never persisted.
    """

    slot: BroadcastSlot
    day_index: int  # 0..6 within the visible week
    start_hour: float  # fractional hour, 0 <= start_hour < 24
    end_hour: float  # fractional hour, 0 < end_hour <= 24
    is_first_segment: bool
    is_last_segment: bool
    segment_index: int = 0

    @property
    def hours(self) -> float:
        return self.end_hour - self.start_hour


@dataclass(frozen=True)
class WeekWindow:
    """Seven consecutive calendar days starting at a local midnight."""

    start: datetime

    def __post_init__(self) -> None:
        midnight = datetime.combine(self.start.date(), datetime.min.time())
        if self.start != midnight:
            # Normalize to local midnight; frozen, so go through object.__setattr__
            object.__setattr__(self, "start", midnight)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(days=DAYS_PER_WEEK)

    @property
    def days(self) -> list[date]:
        first = self.start.date()
        return [first + timedelta(days=i) for i in range(DAYS_PER_WEEK)]

    def day_index(self, day: date) -> Optional[int]:
        """Index of a calendar day within the week, or None if outside it."""
        offset = (day - self.start.date()).days
        return offset if 0 <= offset < DAYS_PER_WEEK else None

    def shifted(self, weeks: int) -> "WeekWindow":
        return WeekWindow(self.start + timedelta(weeks=weeks))
