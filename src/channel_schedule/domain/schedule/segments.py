"""
Per-day segmentation of shows for the weekly calendar.

A show that crosses midnight is drawn as one block per calendar day it
touches: start day from its start hour to midnight, full days in between,
and the end day from midnight to its end hour.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Sequence, Union

from .models import BroadcastSlot, SlotSegment, WeekWindow
from .timegrid import hour_of_day


def _as_days(week_days: Union[WeekWindow, Sequence[Union[date, datetime]]]) -> list[date]:
    if isinstance(week_days, WeekWindow):
        return week_days.days
    return [d.date() if isinstance(d, datetime) else d for d in week_days]


def calculate_segments(
    slot: BroadcastSlot,
    week_days: Union[WeekWindow, Sequence[Union[date, datetime]]],
) -> list[SlotSegment]:
    """Split a show into display segments for the visible week.

    Args:
        slot: Show to split
        week_days: The visible week, as a WeekWindow or its seven days

    Returns:
        Segments in chronological order; empty when no day of the show is visible

    Examples:
        Fri 22:00 - Sat 02:00 -> [Fri 22-24 (first), Sat 0-2 (last)]
        Fri 22:00 - Sat 00:00 -> [Fri 22-24 (first)]  # no zero-height tail
    """
    days = _as_days(week_days)
    start_day = slot.start_time.date()
    end_day = slot.end_time.date()
    start_hour = hour_of_day(slot.start_time)
    end_hour = hour_of_day(slot.end_time)

    segments: list[SlotSegment] = []

    if start_day == end_day:
        if start_day in days:
            segments.append(
                SlotSegment(
                    slot=slot,
                    day_index=days.index(start_day),
                    start_hour=start_hour,
                    end_hour=end_hour,
                    is_first_segment=True,
                    is_last_segment=True,
                )
            )
        return segments

    for day_index, day in enumerate(days):
        if day == start_day:
            segments.append(
                SlotSegment(
                    slot=slot,
                    day_index=day_index,
                    start_hour=start_hour,
                    end_hour=24,
                    is_first_segment=True,
                    is_last_segment=False,
                    segment_index=len(segments),
                )
            )
        elif start_day < day < end_day:
            segments.append(
                SlotSegment(
                    slot=slot,
                    day_index=day_index,
                    start_hour=0,
                    end_hour=24,
                    is_first_segment=False,
                    is_last_segment=False,
                    segment_index=len(segments),
                )
            )
        elif day == end_day and end_hour > 0:
            segments.append(
                SlotSegment(
                    slot=slot,
                    day_index=day_index,
                    start_hour=0,
                    end_hour=end_hour,
                    is_first_segment=False,
                    is_last_segment=True,
                    segment_index=len(segments),
                )
            )

    return segments


def segments_by_day(
    slots: Iterable[BroadcastSlot],
    week_days: Union[WeekWindow, Sequence[Union[date, datetime]]],
) -> dict[int, list[SlotSegment]]:
    """Group the segments of many shows by day index.

    Days with no segments are absent from the result.
    """
    days = _as_days(week_days)
    grouped: dict[int, list[SlotSegment]] = defaultdict(list)
    for slot in slots:
        for segment in calculate_segments(slot, days):
            grouped[segment.day_index].append(segment)
    return dict(grouped)
