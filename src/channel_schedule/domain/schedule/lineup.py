"""
DJ lineup management for venue shows.

Keeps a show's DJ slots inside the show's time bounds, snapped to the
half-hour grid, and tiling the whole show with no gaps. Every function is
pure: it takes a list of DJSlot and returns a new one.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Literal, Optional, Sequence

from loguru import logger

from .models import DJSlot
from .timegrid import MIN_SLOT_DURATION, SNAP_MINUTES, snap_datetime

Boundary = Literal["start", "end"]


def new_slot_id(prefix: str = "dj") -> str:
    """Unique DJ slot ID; uuid4 so rapid successive edits never collide."""
    return f"{prefix}-{uuid.uuid4().hex}"


def _filler(start: datetime, end: datetime) -> DJSlot:
    logger.debug(f"Filling lineup gap {start:%Y-%m-%d %H:%M} - {end:%H:%M}")
    return DJSlot(id=new_slot_id("gap"), start_time=start, end_time=end)


def _clamp(value: datetime, lower: datetime, upper: datetime) -> datetime:
    return max(lower, min(value, upper))


def clamp_to_parent(
    children: Sequence[DJSlot],
    parent_start: datetime,
    parent_end: datetime,
    snap_minutes: int = SNAP_MINUTES,
    min_duration: timedelta = MIN_SLOT_DURATION,
) -> list[DJSlot]:
    """Clamp each DJ slot into the show's bounds and snap it to the grid.

    Start and end are clamped independently into [parent_start, parent_end].
    A slot left with end <= start is extended to min_duration (capped at the
    show end). Both boundaries are then snapped to the nearest grid mark.

    Args:
        children: DJ slots to clamp (order preserved)
        parent_start: Show start
        parent_end: Show end
        snap_minutes: Grid increment
        min_duration: Length given to collapsed slots

    Returns:
        New list of clamped, snapped DJ slots
    """
    clamped: list[DJSlot] = []
    for child in children:
        start = _clamp(child.start_time, parent_start, parent_end)
        end = _clamp(child.end_time, parent_start, parent_end)

        if end <= start:
            end = min(start + min_duration, parent_end)

        start = snap_datetime(start, snap_minutes)
        end = snap_datetime(end, snap_minutes)

        if end <= start:
            end = min(start + min_duration, max(parent_end, start))

        clamped.append(replace(child, start_time=start, end_time=end))
    return clamped


def ensure_full_coverage(
    children: Sequence[DJSlot],
    parent_start: datetime,
    parent_end: datetime,
) -> list[DJSlot]:
    """Fill every gap in a lineup so it tiles the whole show.

    Slots are ordered by start and walked with a cursor from the show start.
    Gaps become unnamed filler slots; a slot overlapping the one before it is
    trimmed to start at the cursor, and anything outside the show is cut at
    the show bounds. Slots left with no time at all are dropped, with a
    warning when a named DJ loses their slot. An empty lineup stays empty.

    Returns:
        Contiguous DJ slots from parent_start to parent_end

    Examples:
        show 10:00-14:00, [11:00-11:30 DJ-A]
        -> [10:00-11:00 filler, 11:00-11:30 DJ-A, 11:30-14:00 filler]
    """
    if not children:
        return []

    ordered = sorted(children, key=lambda dj: (dj.start_time, dj.end_time))
    result: list[DJSlot] = []
    cursor = parent_start

    for child in ordered:
        start = min(max(child.start_time, cursor), parent_end)
        end = max(min(child.end_time, parent_end), start)

        if end <= start:
            if child.dj_name:
                logger.warning(
                    f"Dropping DJ slot {child.id} ({child.dj_name}): "
                    f"no time left at {start:%Y-%m-%d %H:%M}"
                )
            continue

        if start > cursor:
            result.append(_filler(cursor, start))

        result.append(replace(child, start_time=start, end_time=end))
        cursor = max(cursor, end)

    if cursor < parent_end:
        result.append(_filler(cursor, parent_end))

    return result


def retile(
    children: Sequence[DJSlot],
    parent_start: datetime,
    parent_end: datetime,
    snap_minutes: int = SNAP_MINUTES,
    min_duration: timedelta = MIN_SLOT_DURATION,
) -> list[DJSlot]:
    """Clamp, snap, and gap-fill a lineup in one pass.

    Run after any lineup mutation so the saved lineup always tiles the show.
    """
    clamped = clamp_to_parent(
        children, parent_start, parent_end, snap_minutes, min_duration
    )
    return ensure_full_coverage(clamped, parent_start, parent_end)


def add_dj_slot(
    children: Sequence[DJSlot],
    parent_start: datetime,
    parent_end: datetime,
    dj_name: Optional[str] = None,
) -> list[DJSlot]:
    """Append a DJ slot running from the last slot's end to the show end.

    The first slot added covers the whole show.
    """
    start = children[-1].end_time if children else parent_start
    new_slot = DJSlot(
        id=new_slot_id(), start_time=start, end_time=parent_end, dj_name=dj_name
    )
    return [*children, new_slot]


def remove_dj_slot(children: Sequence[DJSlot], slot_id: str) -> list[DJSlot]:
    """Remove a DJ slot, letting a neighbour absorb its time.

    The previous slot is extended to the removed slot's end; when the first
    slot is removed, the next slot is extended back to its start instead.
    Unknown IDs return the lineup unchanged.
    """
    index = _index_of(children, slot_id)
    if index is None:
        logger.warning(f"Cannot remove unknown DJ slot {slot_id}")
        return list(children)

    removed = children[index]
    remaining = [dj for dj in children if dj.id != slot_id]

    if remaining:
        if index > 0:
            remaining[index - 1] = replace(
                remaining[index - 1], end_time=removed.end_time
            )
        else:
            remaining[0] = replace(remaining[0], start_time=removed.start_time)

    return remaining


def update_dj_boundary(
    children: Sequence[DJSlot],
    slot_id: str,
    boundary: Boundary,
    value: datetime,
    parent_start: datetime,
    parent_end: datetime,
    snap_minutes: int = SNAP_MINUTES,
    min_duration: timedelta = MIN_SLOT_DURATION,
) -> list[DJSlot]:
    """Move one boundary of a DJ slot and drag its neighbour along.

    The edited slot is clamped into the show first. Moving an end moves the
    next slot's start to match; moving a start moves the previous slot's end.
    """
    index = _index_of(children, slot_id)
    if index is None:
        logger.warning(f"Cannot update unknown DJ slot {slot_id}")
        return list(children)

    updated = list(children)
    edited = replace(updated[index], **{f"{boundary}_time": value})
    [adjusted] = clamp_to_parent(
        [edited], parent_start, parent_end, snap_minutes, min_duration
    )
    updated[index] = adjusted

    if boundary == "end" and index < len(updated) - 1:
        updated[index + 1] = replace(updated[index + 1], start_time=adjusted.end_time)
    elif boundary == "start" and index > 0:
        updated[index - 1] = replace(updated[index - 1], end_time=adjusted.start_time)

    return updated


def rename_dj_slot(
    children: Sequence[DJSlot], slot_id: str, dj_name: Optional[str]
) -> list[DJSlot]:
    """Set the DJ name on one slot; blank names make it a filler."""
    return [
        replace(dj, dj_name=(dj_name or None)) if dj.id == slot_id else dj
        for dj in children
    ]


def is_fully_covered(
    children: Sequence[DJSlot], parent_start: datetime, parent_end: datetime
) -> bool:
    """True when the lineup is contiguous from parent_start to parent_end.

    Every slot must also have positive length.
    """
    if not children:
        return False
    if any(dj.end_time <= dj.start_time for dj in children):
        return False
    if children[0].start_time != parent_start or children[-1].end_time != parent_end:
        return False
    return all(
        prev.end_time == nxt.start_time for prev, nxt in zip(children, children[1:])
    )


def _index_of(children: Sequence[DJSlot], slot_id: str) -> Optional[int]:
    for i, dj in enumerate(children):
        if dj.id == slot_id:
            return i
    return None
