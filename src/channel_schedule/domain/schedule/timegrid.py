"""
Time grid helpers for the weekly calendar.

Converts between instants and fractional hours of a day, snaps times to the
half-hour grid, and locates week boundaries.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Union

SNAP_MINUTES = 30
MIN_SLOT_DURATION = timedelta(minutes=30)

DateLike = Union[date, datetime]


def to_local(dt: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def start_of_day(day: DateLike) -> datetime:
    """Local midnight of the given day."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def hour_of_day(dt: datetime) -> float:
    """Fractional hour of a datetime, e.g. 22:30 -> 22.5.

    Seconds are ignored, matching the minute resolution of the grid.
    """
    return dt.hour + dt.minute / 60


def hours_from_midnight(dt: datetime, day: DateLike) -> float:
    """Signed hours between the midnight starting `day` and `dt`.

    Unlike hour_of_day, this keeps counting past 24 (or below 0) when `dt`
    falls on another calendar day.
    """
    return (dt - start_of_day(day)).total_seconds() / 3600


def at_hour(day: DateLike, hour: float) -> datetime:
    """Instant at a fractional hour of a day; hour 24 is the next midnight."""
    return start_of_day(day) + timedelta(minutes=round(hour * 60))


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; the grid always rounds halves up
    return math.floor(value + 0.5)


def snap_hour(hour: float, snap_minutes: int = SNAP_MINUTES) -> float:
    """Snap a fractional hour to the nearest grid increment (19.73 -> 19.5)."""
    steps_per_hour = 60 // snap_minutes
    return _round_half_up(hour * steps_per_hour) / steps_per_hour


def snap_datetime(dt: datetime, snap_minutes: int = SNAP_MINUTES) -> datetime:
    """Round an instant to the nearest grid mark.

    Rounding up past :60 rolls into the next hour, and past midnight into the
    next day (23:50 -> 00:00 the following day).
    """
    base = dt.replace(minute=0, second=0, microsecond=0)
    minutes = dt.minute + dt.second / 60
    snapped = _round_half_up(minutes / snap_minutes) * snap_minutes
    return base + timedelta(minutes=snapped)


def start_of_week(day: DateLike, week_starts_on: str = "sunday") -> datetime:
    """Midnight of the first day of the week containing `day`."""
    if isinstance(day, datetime):
        day = day.date()
    if week_starts_on == "monday":
        days_back = day.weekday()
    else:
        days_back = (day.weekday() + 1) % 7
    return start_of_day(day - timedelta(days=days_back))


def format_hour_value(hour: float) -> str:
    """Render a fractional hour as HH:MM (24 renders as 24:00)."""
    total_minutes = round(hour * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"
