"""Calendar pointer interaction - immutable state machine.

The weekly calendar has one interaction state at a time: idle, dragging out
a new show, resizing an existing show, or showing a show's context menu.
`reduce` takes the current state and a pointer event and returns the next
state plus an optional command (create or update request) for the caller
to hand to the slot store.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Union

from loguru import logger

from .models import BroadcastSlot, ResizeEdge, SlotSegment, WeekWindow
from .timegrid import at_hour, hour_of_day, hours_from_midnight, snap_hour

DEFAULT_CELL_HEIGHT_PX = 48


# === States ===


@dataclass(frozen=True)
class Idle:
    """Nothing in progress."""


@dataclass(frozen=True)
class DraggingCreate:
    """Pointer held down on empty grid, sweeping out a new show.

    The preview always spans at least one hour from the starting cell. The
    committed interval only exists once the pointer has left that cell.
    """

    day_index: int
    start_hour: int
    end_hour: int
    has_moved: bool = False

    @property
    def committed_end_hour(self) -> int:
        # A click that never left its cell commits nothing
        return self.end_hour if self.has_moved else self.start_hour


@dataclass(frozen=True)
class DraggingResize:
    """Pointer held down on a show's top or bottom handle."""

    slot: BroadcastSlot
    edge: ResizeEdge
    resize_hour: float  # Last valid snapped hour of the moving edge

    @property
    def original_hour(self) -> float:
        edge_time = self.slot.start_time if self.edge == "top" else self.slot.end_time
        return hour_of_day(edge_time)


@dataclass(frozen=True)
class ContextMenuOpen:
    """Context menu shown for one show at a screen position."""

    slot: BroadcastSlot
    x: int
    y: int


InteractionState = Union[Idle, DraggingCreate, DraggingResize, ContextMenuOpen]


# === Events ===


@dataclass(frozen=True)
class PointerDown:
    """Pointer pressed on an empty hour cell."""

    day_index: int
    hour: int


@dataclass(frozen=True)
class HandlePointerDown:
    """Pointer pressed on a segment's resize handle."""

    segment: SlotSegment
    edge: ResizeEdge


@dataclass(frozen=True)
class PointerMove:
    """Pointer moved over an hour cell.

    offset_px is the pointer's distance from the top of the cell.
    """

    day_index: int
    hour: int
    offset_px: float = 0.0
    cell_height_px: float = DEFAULT_CELL_HEIGHT_PX

    @property
    def precise_hour(self) -> float:
        if self.cell_height_px <= 0:
            return float(self.hour)
        return self.hour + self.offset_px / self.cell_height_px


@dataclass(frozen=True)
class PointerUp:
    """Pointer released over the grid."""


@dataclass(frozen=True)
class PointerLeave:
    """Pointer left the grid; handled exactly like a release."""


@dataclass(frozen=True)
class ContextMenuRequested:
    slot: BroadcastSlot
    x: int
    y: int


@dataclass(frozen=True)
class ContextMenuClosed:
    pass


InteractionEvent = Union[
    PointerDown,
    HandlePointerDown,
    PointerMove,
    PointerUp,
    PointerLeave,
    ContextMenuRequested,
    ContextMenuClosed,
]


# === Commands ===


@dataclass(frozen=True)
class CreateShowRequest:
    """Ask the caller to create a show over this interval."""

    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class UpdateShowRequest:
    """Ask the caller to move one boundary of an existing show."""

    slot_id: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def as_updates(self) -> dict[str, datetime]:
        updates: dict[str, datetime] = {}
        if self.start_time is not None:
            updates["start_time"] = self.start_time
        if self.end_time is not None:
            updates["end_time"] = self.end_time
        return updates


Command = Union[CreateShowRequest, UpdateShowRequest]
Transition = tuple[InteractionState, Optional[Command]]


@dataclass(frozen=True)
class InteractionContext:
    """What the reducer needs to know about the calendar it runs in."""

    week: WeekWindow
    now: datetime
    can_update: bool = True  # False hides resize handles entirely
    min_slot_hours: float = 0.5
    snap_minutes: int = 30


def create_initial_state() -> InteractionState:
    """Create the initial interaction state."""
    return Idle()


def can_resize(
    segment: SlotSegment, edge: ResizeEdge, context: InteractionContext
) -> bool:
    """Whether a segment shows a resize handle on the given edge.

    Top handles sit on a show's first segment, bottom handles on its last,
    and neither appears on shows that already ended.
    """
    if not context.can_update:
        return False
    if segment.slot.has_ended(context.now):
        return False
    if edge == "top":
        return segment.is_first_segment
    return segment.is_last_segment


# === Reducer ===


def reduce(
    state: InteractionState,
    event: InteractionEvent,
    context: InteractionContext,
) -> Transition:
    """Advance the interaction state by one event.

    Args:
        state: Current interaction state
        event: Pointer or menu event
        context: Visible week, current time, and grid settings

    Returns:
        (next_state, command) - command is None unless a drag committed
    """
    if isinstance(event, ContextMenuRequested):
        if isinstance(state, (Idle, ContextMenuOpen)):
            return ContextMenuOpen(slot=event.slot, x=event.x, y=event.y), None
        return state, None

    if isinstance(event, ContextMenuClosed):
        if isinstance(state, ContextMenuOpen):
            return Idle(), None
        return state, None

    if isinstance(state, Idle):
        return _reduce_idle(event, context)
    if isinstance(state, DraggingCreate):
        return _reduce_dragging_create(state, event, context)
    if isinstance(state, DraggingResize):
        return _reduce_dragging_resize(state, event, context)
    if isinstance(state, ContextMenuOpen):
        # Pressing anywhere outside the menu dismisses it
        if isinstance(event, (PointerDown, HandlePointerDown)):
            return Idle(), None
        return state, None

    raise TypeError(f"Unknown interaction state: {state!r}")


def _reduce_idle(event: InteractionEvent, context: InteractionContext) -> Transition:
    if isinstance(event, PointerDown):
        return (
            DraggingCreate(
                day_index=event.day_index,
                start_hour=event.hour,
                end_hour=event.hour + 1,
            ),
            None,
        )

    if isinstance(event, HandlePointerDown):
        if not can_resize(event.segment, event.edge, context):
            logger.debug(
                f"Ignoring {event.edge} handle on slot {event.segment.slot.id}: not resizable"
            )
            return Idle(), None
        slot = event.segment.slot
        edge_time = slot.start_time if event.edge == "top" else slot.end_time
        return (
            DraggingResize(slot=slot, edge=event.edge, resize_hour=hour_of_day(edge_time)),
            None,
        )

    return Idle(), None


def _reduce_dragging_create(
    state: DraggingCreate, event: InteractionEvent, context: InteractionContext
) -> Transition:
    if isinstance(event, PointerMove):
        # Drag is pinned to the column it started in
        if event.day_index != state.day_index:
            return state, None
        return (
            replace(
                state,
                end_hour=max(event.hour + 1, state.start_hour + 1),
                has_moved=state.has_moved or event.hour != state.start_hour,
            ),
            None,
        )

    if isinstance(event, (PointerUp, PointerLeave)):
        return Idle(), _commit_create(state, context)

    return state, None


def _commit_create(
    state: DraggingCreate, context: InteractionContext
) -> Optional[CreateShowRequest]:
    day = context.week.days[state.day_index]
    start_time = at_hour(day, state.start_hour)
    end_time = at_hour(day, state.committed_end_hour)

    if end_time <= start_time:
        logger.debug(f"Discarding zero-length drag at {start_time:%Y-%m-%d %H:%M}")
        return None

    logger.info(f"Drag-create {start_time:%Y-%m-%d %H:%M} - {end_time:%H:%M}")
    return CreateShowRequest(start_time=start_time, end_time=end_time)


def _reduce_dragging_resize(
    state: DraggingResize, event: InteractionEvent, context: InteractionContext
) -> Transition:
    if isinstance(event, PointerMove):
        snapped = snap_hour(event.precise_hour, context.snap_minutes)
        if _resize_allowed(state, snapped, context):
            return replace(state, resize_hour=snapped), None
        logger.debug(
            f"Rejected {state.edge} resize of slot {state.slot.id} to hour {snapped}"
        )
        return state, None

    if isinstance(event, (PointerUp, PointerLeave)):
        return Idle(), _commit_resize(state)

    return state, None


def _resize_allowed(
    state: DraggingResize, snapped: float, context: InteractionContext
) -> bool:
    """Check a snapped edge position against the day bounds and the other edge.

    The other edge is measured from the moving edge's own midnight, so for
    an overnight show it lies past 24 (or below 0) and never blocks a move
    that stays within the day.
    """
    slot = state.slot
    if state.edge == "top":
        end_hour = hours_from_midnight(slot.end_time, slot.start_time)
        return 0 <= snapped < end_hour - context.min_slot_hours
    start_hour = hours_from_midnight(slot.start_time, slot.end_time)
    return start_hour + context.min_slot_hours < snapped <= 24


def _commit_resize(state: DraggingResize) -> Optional[UpdateShowRequest]:
    if state.resize_hour == state.original_hour:
        return None

    slot = state.slot
    if state.edge == "top":
        new_start = at_hour(slot.start_time, state.resize_hour)
        if new_start == slot.start_time:
            return None
        logger.info(f"Resize slot {slot.id}: start -> {new_start:%Y-%m-%d %H:%M}")
        return UpdateShowRequest(slot_id=slot.id, start_time=new_start)

    new_end = at_hour(slot.end_time, state.resize_hour)
    if new_end == slot.end_time:
        return None
    logger.info(f"Resize slot {slot.id}: end -> {new_end:%Y-%m-%d %H:%M}")
    return UpdateShowRequest(slot_id=slot.id, end_time=new_end)
