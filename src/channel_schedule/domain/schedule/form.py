"""
Show editor form state.

Holds what the create/edit dialog shows: a name, separate start and end
dates, half-hour times chosen from a fixed list, the broadcast type, and
either one DJ name (remote) or a DJ lineup (venue). build_save_payload turns
the form into the values SlotStore.create_slot / update_slot expect.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from .exceptions import InvalidShowError
from .lineup import ensure_full_coverage
from .models import BROADCAST_TYPES, BroadcastSlot, DJSlot
from .timegrid import SNAP_MINUTES, snap_datetime


@dataclass(frozen=True)
class TimeOption:
    value: str  # "HH:MM"
    label: str  # "8pm", "8:30pm"


def _option_label(hour: int, minute: int) -> str:
    hour12 = 12 if hour % 12 == 0 else hour % 12
    suffix = "am" if hour < 12 else "pm"
    if minute == 0:
        return f"{hour12}{suffix}"
    return f"{hour12}:{minute:02d}{suffix}"


def time_options(snap_minutes: int = SNAP_MINUTES) -> list[TimeOption]:
    """Every selectable time of day, midnight first (48 at half-hour steps)."""
    return [
        TimeOption(value=f"{hour:02d}:{minute:02d}", label=_option_label(hour, minute))
        for hour in range(24)
        for minute in range(0, 60, snap_minutes)
    ]


def _parse_time(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError as e:
        raise InvalidShowError(f"Invalid time '{value}'") from e


@dataclass(frozen=True)
class ShowForm:
    """Editable fields of a show."""

    show_name: str = ""
    start_date: Optional[date] = None
    start_time: str = ""  # "HH:MM"
    end_date: Optional[date] = None
    end_time: str = ""  # "HH:MM"
    broadcast_type: str = "venue"
    dj_name: str = ""
    dj_slots: list[DJSlot] = field(default_factory=list)

    @classmethod
    def from_slot(cls, slot: BroadcastSlot) -> "ShowForm":
        """Prefill from an existing show, snapping its times to the grid."""
        start = snap_datetime(slot.start_time)
        end = snap_datetime(slot.end_time)
        return cls(
            show_name=slot.show_name,
            start_date=start.date(),
            start_time=f"{start:%H:%M}",
            end_date=end.date(),
            end_time=f"{end:%H:%M}",
            broadcast_type=slot.broadcast_type,
            dj_name=slot.dj_name or "",
            dj_slots=[
                replace(
                    dj,
                    start_time=snap_datetime(dj.start_time),
                    end_time=snap_datetime(dj.end_time),
                )
                for dj in slot.dj_slots
            ],
        )

    @classmethod
    def from_drag(cls, start_time: datetime, end_time: datetime) -> "ShowForm":
        """Prefill a new show from a drag-created interval."""
        start = snap_datetime(start_time)
        end = snap_datetime(end_time)
        return cls(
            start_date=start.date(),
            start_time=f"{start:%H:%M}",
            end_date=end.date(),
            end_time=f"{end:%H:%M}",
        )

    @property
    def start(self) -> Optional[datetime]:
        if self.start_date is None or not self.start_time:
            return None
        return datetime.combine(self.start_date, _parse_time(self.start_time))

    @property
    def end(self) -> Optional[datetime]:
        if self.end_date is None or not self.end_time:
            return None
        return datetime.combine(self.end_date, _parse_time(self.end_time))


def resolve_overnight(form: ShowForm) -> ShowForm:
    """Move the end to the next day when it is not after the start.

    Only applies while both times sit on the same date; a missing end date
    defaults to the start date first.
    """
    if form.start_date is not None and form.end_date is None:
        form = replace(form, end_date=form.start_date)

    if (
        form.start_date is None
        or not form.start_time
        or not form.end_time
        or form.start_date != form.end_date
    ):
        return form

    if _parse_time(form.end_time) <= _parse_time(form.start_time):
        return replace(form, end_date=form.start_date + timedelta(days=1))
    return form


def is_overnight(form: ShowForm) -> bool:
    return (
        form.start_date is not None
        and form.end_date is not None
        and form.end_date > form.start_date
    )


@dataclass(frozen=True)
class ShowPayload:
    """Values to persist for a show."""

    show_name: str
    start_time: datetime
    end_time: datetime
    broadcast_type: str
    dj_name: Optional[str] = None
    dj_slots: list[DJSlot] = field(default_factory=list)

    def as_create_kwargs(self) -> dict[str, Any]:
        return {
            "show_name": self.show_name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "broadcast_type": self.broadcast_type,
            "dj_name": self.dj_name,
            "dj_slots": self.dj_slots,
        }

    def as_updates(self) -> dict[str, Any]:
        # broadcast_type is fixed once a show exists
        kwargs = self.as_create_kwargs()
        del kwargs["broadcast_type"]
        return kwargs


def build_save_payload(form: ShowForm) -> ShowPayload:
    """Validate the form and turn it into a ShowPayload.

    Venue lineups are gap-filled so they tile the whole show. Remote shows
    keep only the DJ name; venue shows keep only the lineup.

    Raises:
        InvalidShowError: Missing name, dates or times, unknown type, or end <= start
    """
    show_name = form.show_name.strip()
    if not show_name:
        raise InvalidShowError("Show name is required")
    if form.broadcast_type not in BROADCAST_TYPES:
        raise InvalidShowError(f"Unknown broadcast type: '{form.broadcast_type}'")

    start, end = form.start, form.end
    if start is None or end is None:
        raise InvalidShowError("Start and end date and time are required")
    if end <= start:
        raise InvalidShowError("Show must end after it starts")

    if form.broadcast_type == "remote":
        return ShowPayload(
            show_name=show_name,
            start_time=start,
            end_time=end,
            broadcast_type="remote",
            dj_name=form.dj_name.strip() or None,
        )

    return ShowPayload(
        show_name=show_name,
        start_time=start,
        end_time=end,
        broadcast_type="venue",
        dj_slots=ensure_full_coverage(form.dj_slots, start, end),
    )
