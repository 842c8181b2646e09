"""
Weekly calendar controller.

Owns the visible week and the pointer interaction state, lays segments out
on the hour grid, and forwards the reducer's commands to the slot store.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from loguru import logger

from channel_schedule.core.config import ScheduleConfig

from .exceptions import ScheduleError
from .interaction import (
    Command,
    CreateShowRequest,
    DraggingCreate,
    DraggingResize,
    InteractionContext,
    InteractionEvent,
    InteractionState,
    UpdateShowRequest,
    create_initial_state,
    reduce,
)
from .models import BroadcastSlot, SlotSegment, WeekWindow
from .segments import segments_by_day
from .store import SlotStore
from .timegrid import hour_of_day, start_of_week

CreateCallback = Callable[[datetime, datetime], None]


@dataclass(frozen=True)
class SegmentBox:
    """Pixel placement of a segment within its day column."""

    top: float
    height: float


@dataclass(frozen=True)
class NowLine:
    day_index: int
    top: float


class WeeklyCalendar:
    """Seven-day schedule view over a SlotStore.

    Args:
        store: Where shows are read from and written to
        config: Grid settings ([schedule] config section)
        today: Day whose week is shown first
        on_create: Called with (start, end) for drag-created shows instead
            of creating them directly, e.g. to open the show editor
        clock: Source of the current time
    """

    def __init__(
        self,
        store: SlotStore,
        config: Optional[ScheduleConfig] = None,
        today: Optional[date] = None,
        on_create: Optional[CreateCallback] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.config = config or ScheduleConfig()
        self.on_create = on_create
        self._clock = clock
        self.week = WeekWindow(
            start_of_week(today or clock(), self.config.week_starts_on)
        )
        self.state: InteractionState = create_initial_state()

    # === Week navigation ===

    def previous_week(self) -> WeekWindow:
        self.week = self.week.shifted(-1)
        return self.week

    def next_week(self) -> WeekWindow:
        self.week = self.week.shifted(1)
        return self.week

    def go_to_today(self, today: Optional[date] = None) -> WeekWindow:
        self.week = WeekWindow(
            start_of_week(today or self._clock(), self.config.week_starts_on)
        )
        return self.week

    # === Layout ===

    def visible_slots(self) -> list[BroadcastSlot]:
        return self.store.list_in_range(self.week.start, self.week.end)

    def segments_by_day(
        self, slots: Optional[Iterable[BroadcastSlot]] = None
    ) -> dict[int, list[SlotSegment]]:
        """Segments of the given (or all visible) shows, keyed by day index."""
        if slots is None:
            slots = self.visible_slots()
        return segments_by_day(slots, self.week)

    def segment_box(self, segment: SlotSegment) -> SegmentBox:
        """Position a segment, showing an in-progress resize of its show."""
        start_hour = segment.start_hour
        end_hour = segment.end_hour

        state = self.state
        if isinstance(state, DraggingResize) and state.slot.id == segment.slot.id:
            if state.edge == "top" and segment.is_first_segment:
                start_hour = state.resize_hour
            elif state.edge == "bottom" and segment.is_last_segment:
                end_hour = state.resize_hour

        px = self.config.hour_height_px
        return SegmentBox(
            top=start_hour * px,
            height=max((end_hour - start_hour) * px, self.config.min_segment_height_px),
        )

    def drag_preview_box(self) -> Optional[tuple[int, SegmentBox]]:
        """Day index and box of the show being dragged out, if any."""
        state = self.state
        if not isinstance(state, DraggingCreate):
            return None
        px = self.config.hour_height_px
        return state.day_index, SegmentBox(
            top=state.start_hour * px,
            height=(state.end_hour - state.start_hour) * px,
        )

    def current_time_offset(self, now: Optional[datetime] = None) -> Optional[NowLine]:
        """Where the current-time line sits, or None when today is not visible."""
        now = now or self._clock()
        day_index = self.week.day_index(now.date())
        if day_index is None:
            return None
        return NowLine(day_index=day_index, top=hour_of_day(now) * self.config.hour_height_px)

    # === Interaction ===

    def context(self, now: Optional[datetime] = None) -> InteractionContext:
        return InteractionContext(
            week=self.week,
            now=now or self._clock(),
            min_slot_hours=self.config.min_slot_minutes / 60,
            snap_minutes=self.config.snap_minutes,
        )

    def dispatch(
        self, event: InteractionEvent, now: Optional[datetime] = None
    ) -> Optional[Command]:
        """Feed one pointer event through the reducer and run its command.

        The interaction state always advances, even when the store rejects
        the command; store errors are logged and re-raised.
        """
        self.state, command = reduce(self.state, event, self.context(now))
        if command is None:
            return None

        try:
            if isinstance(command, CreateShowRequest):
                self._create(command)
            elif isinstance(command, UpdateShowRequest):
                self.store.update_slot(command.slot_id, **command.as_updates())
        except ScheduleError as e:
            logger.error(f"Calendar command {command!r} failed: {e}")
            raise
        return command

    def _create(self, command: CreateShowRequest) -> None:
        if self.on_create is not None:
            self.on_create(command.start_time, command.end_time)
            return
        self.store.create_slot(
            show_name="New Show",
            start_time=command.start_time,
            end_time=command.end_time,
        )
