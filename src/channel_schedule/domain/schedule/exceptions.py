"""Scheduling exceptions for error handling."""

from typing import Optional


class ScheduleError(Exception):
    """Base exception for scheduling operations."""

    pass


class InvalidShowError(ScheduleError, ValueError):
    """Raised when a show or DJ slot violates its data invariants."""

    pass


class SlotStoreError(ScheduleError):
    """Raised when the slot store fails to read or write."""

    pass


class SlotNotFoundError(SlotStoreError):
    """Raised when a slot ID does not exist in the store."""

    def __init__(self, slot_id: str, message: Optional[str] = None):
        self.slot_id = slot_id
        super().__init__(message or f"Broadcast slot not found: {slot_id}")


class BroadcastTokenError(ScheduleError):
    """Raised when a broadcast token matches no slot."""

    pass


class BroadcastEndedError(ScheduleError):
    """Raised when a token has expired or its show is already over."""

    pass
