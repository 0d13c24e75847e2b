"""
Hotelius Hotel Reservation Engine — Request Commands
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from engines.hotel_reservation.events import BOOKING_EVENTS, EVENT_METADATA

HOTEL_BOOKING_TRANSITION_REQUEST = "hotel.booking.transition.request"

MAX_REASON_LENGTH = 500


@dataclass(frozen=True)
class TransitionBookingRequest:
    booking_id:  str
    event:       str
    actor_id:    Optional[str] = None
    reason:      Optional[str] = None
    payment_ref: Optional[str] = None

    def __post_init__(self):
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        if self.event not in BOOKING_EVENTS:
            raise ValueError(f"event must be one of {list(BOOKING_EVENTS)}.")
        if self.reason is not None and len(self.reason) > MAX_REASON_LENGTH:
            raise ValueError(f"reason must be at most {MAX_REASON_LENGTH} characters.")

    @property
    def command_type(self) -> str:
        return HOTEL_BOOKING_TRANSITION_REQUEST

    @property
    def is_automated(self) -> bool:
        return EVENT_METADATA[self.event]["automated"]

    def to_payload(self) -> dict:
        return {
            "booking_id":  self.booking_id,
            "event":       self.event,
            "actor_id":    self.actor_id,
            "reason":      self.reason,
            "payment_ref": self.payment_ref,
        }


def cancel_request(booking_id: str, reason: str, actor_id: Optional[str] = None):
    return TransitionBookingRequest(booking_id, "CANCEL", actor_id=actor_id, reason=reason)


def expire_request(booking_id: str):
    return TransitionBookingRequest(
        booking_id, "EXPIRE", actor_id="system.hold_expiry",
        reason="Automated expiration",
    )
