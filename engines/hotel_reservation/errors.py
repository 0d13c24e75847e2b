"""
Hotelius Hotel Reservation Engine — Errors
============================================
Every error carries a stable machine-readable `code`.
"""

from __future__ import annotations

from typing import FrozenSet, Optional


class BookingTransitionError(Exception):
    """Base error for booking lifecycle failures."""

    code = "TRANSITION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        booking_id: Optional[str] = None,
        current_state: Optional[str] = None,
    ):
        super().__init__(message)
        self.booking_id = booking_id
        self.current_state = current_state

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": str(self),
            "booking_id": self.booking_id,
            "current_state": self.current_state,
        }


class BookingNotFoundError(BookingTransitionError):
    code = "BOOKING_NOT_FOUND"

    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found.", booking_id=booking_id)


class InvalidTransitionError(BookingTransitionError):
    """Event is not legal from the booking's current state."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        *,
        event: str,
        current_state: str,
        available_actions: FrozenSet[str],
        booking_id: Optional[str] = None,
    ):
        legal = ", ".join(sorted(available_actions)) or "none"
        super().__init__(
            f"Invalid event '{event}' for state '{current_state}'. "
            f"Available actions: {legal}",
            booking_id=booking_id,
            current_state=current_state,
        )
        self.event = event
        self.available_actions = frozenset(available_actions)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["event"] = self.event
        data["available_actions"] = sorted(self.available_actions)
        return data


class MissingTransitionDataError(BookingTransitionError):
    """Event needs a reason or payment reference that was not supplied."""

    code = "MISSING_TRANSITION_DATA"


class ConcurrentStatusUpdateError(BookingTransitionError):
    """Compare-and-swap kept losing to concurrent writers."""

    code = "CONCURRENT_UPDATE"
