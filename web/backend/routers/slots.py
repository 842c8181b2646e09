"""
Broadcast slot API endpoints.

CRUD for scheduled shows, the weekly calendar layout, broadcast token
checks for remote DJs, and the live/paused/completed broadcast lifecycle.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from pydantic import BaseModel

from channel_schedule.core.config import Config
from channel_schedule.domain.schedule import (
    BroadcastEndedError,
    BroadcastSlot,
    BroadcastTokenError,
    DJSlot,
    InvalidShowError,
    SlotNotFoundError,
    SlotStore,
    WeekWindow,
    segments_by_day,
)
from channel_schedule.domain.schedule.lineup import new_slot_id
from channel_schedule.domain.schedule.timegrid import start_of_week, to_local
from web.backend.deps import get_config, get_store

router = APIRouter(prefix="/slots", tags=["slots"])


# === Pydantic Models ===


class DJSlotModel(BaseModel):
    """One DJ's time range within a venue show."""

    id: Optional[str] = None
    dj_name: Optional[str] = None
    start_time: datetime
    end_time: datetime


class SlotResponse(BaseModel):
    """Broadcast slot representation for API responses."""

    id: str
    station_id: str
    show_name: str
    dj_name: Optional[str]
    dj_slots: list[DJSlotModel]
    start_time: datetime
    end_time: datetime
    broadcast_type: str
    status: str
    venue_slug: Optional[str]
    broadcast_url: str
    token_expires_at: Optional[datetime]
    recording_url: Optional[str]
    recording_status: Optional[str]
    live_dj_name: Optional[str]


class CreateSlotRequest(BaseModel):
    """Request body for creating a show."""

    show_name: str
    start_time: datetime
    end_time: datetime
    broadcast_type: str = "venue"
    dj_name: Optional[str] = None
    dj_slots: Optional[list[DJSlotModel]] = None
    venue_slug: Optional[str] = None


class UpdateSlotRequest(BaseModel):
    """Request body for a partial show update."""

    show_name: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[str] = None
    dj_name: Optional[str] = None
    dj_slots: Optional[list[DJSlotModel]] = None


class SegmentResponse(BaseModel):
    slot_id: str
    show_name: str
    start_hour: float
    end_hour: float
    is_first_segment: bool
    is_last_segment: bool


class DayResponse(BaseModel):
    day_index: int
    date: date
    segments: list[SegmentResponse]


class WeekResponse(BaseModel):
    """One week of the calendar, segments grouped by day."""

    week_start: datetime
    days: list[DayResponse]


class TokenValidationResponse(BaseModel):
    valid: bool
    slot: Optional[SlotResponse] = None
    schedule_status: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


class VenueSlotsResponse(BaseModel):
    current: Optional[SlotResponse]
    next: Optional[SlotResponse]


class GoLiveRequest(BaseModel):
    """Request body for going live on a broadcast token."""

    token: str
    dj_name: Optional[str] = None


class CompleteSlotRequest(BaseModel):
    force: bool = False  # DJ ended the broadcast before the scheduled end


class CompleteExpiredResponse(BaseModel):
    completed: int
    missed: int


# === Converters ===


def _dj_slot_from_model(model: DJSlotModel) -> DJSlot:
    return DJSlot(
        id=model.id or new_slot_id(),
        dj_name=model.dj_name or None,
        start_time=to_local(model.start_time),
        end_time=to_local(model.end_time),
    )


def _slot_to_response(slot: BroadcastSlot, store: SlotStore) -> SlotResponse:
    """Convert BroadcastSlot dataclass to API response model."""
    return SlotResponse(
        id=slot.id,
        station_id=slot.station_id,
        show_name=slot.show_name,
        dj_name=slot.dj_name,
        dj_slots=[
            DJSlotModel(
                id=dj.id,
                dj_name=dj.dj_name,
                start_time=dj.start_time,
                end_time=dj.end_time,
            )
            for dj in slot.dj_slots
        ],
        start_time=slot.start_time,
        end_time=slot.end_time,
        broadcast_type=slot.broadcast_type,
        status=slot.status,
        venue_slug=slot.venue_slug,
        broadcast_url=store.broadcast_url(slot),
        token_expires_at=slot.token_expires_at,
        recording_url=slot.recording_url,
        recording_status=slot.recording_status,
        live_dj_name=slot.live_dj_name,
    )


# === Endpoints ===


@router.get("", response_model=list[SlotResponse])
def list_slots(store: SlotStore = Depends(get_store)) -> list[SlotResponse]:
    """List all shows, newest first."""
    return [_slot_to_response(slot, store) for slot in store.list_slots()]


@router.post("", response_model=SlotResponse, status_code=201)
def create_slot(
    req: CreateSlotRequest, store: SlotStore = Depends(get_store)
) -> SlotResponse:
    """Create a show."""
    try:
        slot = store.create_slot(
            show_name=req.show_name,
            start_time=to_local(req.start_time),
            end_time=to_local(req.end_time),
            broadcast_type=req.broadcast_type,
            dj_name=req.dj_name,
            dj_slots=[_dj_slot_from_model(dj) for dj in req.dj_slots or []],
            venue_slug=req.venue_slug,
        )
    except InvalidShowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _slot_to_response(slot, store)


@router.get("/week", response_model=WeekResponse)
def get_week(
    start: Optional[date] = Query(None, description="Any day in the week"),
    store: SlotStore = Depends(get_store),
    config: Config = Depends(get_config),
) -> WeekResponse:
    """Calendar segments for the week containing `start` (default: today)."""
    week = WeekWindow(
        start_of_week(start or date.today(), config.schedule.week_starts_on)
    )
    grouped = segments_by_day(store.list_in_range(week.start, week.end), week)

    return WeekResponse(
        week_start=week.start,
        days=[
            DayResponse(
                day_index=day_index,
                date=day,
                segments=[
                    SegmentResponse(
                        slot_id=segment.slot.id,
                        show_name=segment.slot.show_name,
                        start_hour=segment.start_hour,
                        end_hour=segment.end_hour,
                        is_first_segment=segment.is_first_segment,
                        is_last_segment=segment.is_last_segment,
                    )
                    for segment in grouped.get(day_index, [])
                ],
            )
            for day_index, day in enumerate(week.days)
        ],
    )


@router.get("/validate-token", response_model=TokenValidationResponse)
def validate_token(
    token: str, store: SlotStore = Depends(get_store)
) -> TokenValidationResponse:
    """Check a remote DJ's broadcast token."""
    result = store.validate_token(token)
    return TokenValidationResponse(
        valid=result.valid,
        slot=_slot_to_response(result.slot, store) if result.slot else None,
        schedule_status=result.schedule_status,
        message=result.message,
        error=result.error,
    )


@router.get("/venue", response_model=VenueSlotsResponse)
def get_venue_slots(store: SlotStore = Depends(get_store)) -> VenueSlotsResponse:
    """Venue show on air now and the next one."""
    venue = store.get_venue_slots()
    return VenueSlotsResponse(
        current=_slot_to_response(venue.current, store) if venue.current else None,
        next=_slot_to_response(venue.next, store) if venue.next else None,
    )


# === Broadcast Lifecycle ===


@router.post("/go-live", response_model=SlotResponse)
def go_live(req: GoLiveRequest, store: SlotStore = Depends(get_store)) -> SlotResponse:
    """Mark the show behind a broadcast token as live."""
    try:
        slot = store.go_live(req.token, dj_name=req.dj_name)
    except BroadcastTokenError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BroadcastEndedError as e:
        raise HTTPException(status_code=410, detail=str(e))
    return _slot_to_response(slot, store)


@router.post("/complete-expired", response_model=CompleteExpiredResponse)
def complete_expired(store: SlotStore = Depends(get_store)) -> CompleteExpiredResponse:
    """Mark every ended show completed or missed."""
    completed, missed = store.complete_expired()
    return CompleteExpiredResponse(completed=completed, missed=missed)


@router.post("/{slot_id}/pause", response_model=SlotResponse)
def pause_slot(slot_id: str, store: SlotStore = Depends(get_store)) -> SlotResponse:
    """Pause a live show (the DJ's browser closed)."""
    try:
        slot = store.pause_slot(slot_id)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Slot not found")
    return _slot_to_response(slot, store)


@router.post("/{slot_id}/complete", response_model=SlotResponse)
def complete_slot(
    slot_id: str,
    req: Optional[CompleteSlotRequest] = None,
    store: SlotStore = Depends(get_store),
) -> SlotResponse:
    """Settle a show's final status at or before its end."""
    force = req.force if req else False
    try:
        slot = store.complete_slot(slot_id, force=force)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Slot not found")
    except InvalidShowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _slot_to_response(slot, store)


# === Single Slot ===


@router.get("/{slot_id}", response_model=SlotResponse)
def get_slot(slot_id: str, store: SlotStore = Depends(get_store)) -> SlotResponse:
    """Get a show by ID."""
    slot = store.get_slot(slot_id)
    if not slot:
        raise HTTPException(status_code=404, detail="Slot not found")
    return _slot_to_response(slot, store)


@router.patch("/{slot_id}", response_model=SlotResponse)
def update_slot(
    slot_id: str, req: UpdateSlotRequest, store: SlotStore = Depends(get_store)
) -> SlotResponse:
    """Update the fields present in the request body."""
    updates = req.model_dump(exclude_unset=True)
    for name in ("start_time", "end_time"):
        if name in updates:
            if updates[name] is None:
                raise HTTPException(status_code=400, detail=f"{name} cannot be null")
            updates[name] = to_local(updates[name])
    if "dj_slots" in updates:
        updates["dj_slots"] = [
            _dj_slot_from_model(dj) for dj in req.dj_slots or []
        ]

    try:
        slot = store.update_slot(slot_id, **updates)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Slot not found")
    except InvalidShowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _slot_to_response(slot, store)


@router.delete("/{slot_id}")
def delete_slot(slot_id: str, store: SlotStore = Depends(get_store)) -> dict[str, bool]:
    """Delete a show."""
    try:
        store.delete_slot(slot_id)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Slot not found")
    logger.info(f"Deleted slot {slot_id} via API")
    return {"success": True}
