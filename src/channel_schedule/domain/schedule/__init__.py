"""
Schedule domain module.

Provides the broadcast schedule: shows and their DJ lineups, per-day
segmentation for the weekly calendar, drag and resize interaction, the show
editor form, and SQLite persistence.
"""

from .calendar import NowLine, SegmentBox, WeeklyCalendar
from .exceptions import (
    BroadcastEndedError,
    BroadcastTokenError,
    InvalidShowError,
    ScheduleError,
    SlotNotFoundError,
    SlotStoreError,
)
from .form import (
    ShowForm,
    ShowPayload,
    TimeOption,
    build_save_payload,
    is_overnight,
    resolve_overnight,
    time_options,
)
from .interaction import (
    ContextMenuClosed,
    ContextMenuOpen,
    ContextMenuRequested,
    CreateShowRequest,
    DraggingCreate,
    DraggingResize,
    HandlePointerDown,
    Idle,
    InteractionContext,
    PointerDown,
    PointerLeave,
    PointerMove,
    PointerUp,
    UpdateShowRequest,
    can_resize,
    create_initial_state,
    reduce,
)
from .lineup import (
    add_dj_slot,
    clamp_to_parent,
    ensure_full_coverage,
    is_fully_covered,
    remove_dj_slot,
    rename_dj_slot,
    retile,
    update_dj_boundary,
)
from .models import BroadcastSlot, DJSlot, SlotSegment, WeekWindow
from .segments import calculate_segments, segments_by_day
from .store import SlotStore, TokenValidation, VenueSlots

__all__ = [
    # Models
    "BroadcastSlot",
    "DJSlot",
    "SlotSegment",
    "WeekWindow",
    # Errors
    "ScheduleError",
    "InvalidShowError",
    "SlotStoreError",
    "SlotNotFoundError",
    "BroadcastTokenError",
    "BroadcastEndedError",
    # Segments
    "calculate_segments",
    "segments_by_day",
    # Lineup
    "clamp_to_parent",
    "ensure_full_coverage",
    "retile",
    "add_dj_slot",
    "remove_dj_slot",
    "update_dj_boundary",
    "rename_dj_slot",
    "is_fully_covered",
    # Interaction
    "Idle",
    "DraggingCreate",
    "DraggingResize",
    "ContextMenuOpen",
    "PointerDown",
    "HandlePointerDown",
    "PointerMove",
    "PointerUp",
    "PointerLeave",
    "ContextMenuRequested",
    "ContextMenuClosed",
    "CreateShowRequest",
    "UpdateShowRequest",
    "InteractionContext",
    "create_initial_state",
    "can_resize",
    "reduce",
    # Form
    "TimeOption",
    "ShowForm",
    "ShowPayload",
    "time_options",
    "resolve_overnight",
    "is_overnight",
    "build_save_payload",
    # Store
    "SlotStore",
    "TokenValidation",
    "VenueSlots",
    # Calendar
    "WeeklyCalendar",
    "SegmentBox",
    "NowLine",
]
