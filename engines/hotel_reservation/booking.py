"""
Hotelius Hotel Reservation Engine — Booking Records
=====================================================
Immutable snapshots of a booking as read from a BookingStore.
A new status is never written onto a snapshot; stores apply it
through compare-and-swap and hand back a fresh snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from engines.hotel_reservation.events import BOOKING_STATES, PENDING


@dataclass(frozen=True)
class Booking:
    id: str
    hotel_id: str
    room_type_id: str
    guest_id: str
    check_in: date
    check_out: date
    num_adults: int
    total_price_cents: int
    currency: str
    created_at: datetime
    updated_at: datetime
    status: str = PENDING
    num_children: int = 0
    room_id: Optional[str] = None
    payment_intent_ref: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    soft_hold_expires_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if self.status not in BOOKING_STATES:
            raise ValueError(f"status must be one of {list(BOOKING_STATES)}.")
        if self.check_in >= self.check_out:
            raise ValueError("check_in must be before check_out.")
        if not isinstance(self.num_adults, int) or self.num_adults < 0:
            raise ValueError("num_adults must be int >= 0.")
        if not isinstance(self.num_children, int) or self.num_children < 0:
            raise ValueError("num_children must be int >= 0.")
        if self.num_adults + self.num_children < 1:
            raise ValueError("booking must have at least one guest.")
        if not isinstance(self.total_price_cents, int) or self.total_price_cents < 0:
            raise ValueError("total_price_cents must be int >= 0.")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("currency must be 3-letter ISO 4217 code.")

    def with_changes(self, **changes) -> Booking:
        return replace(self, **changes)

    def to_dict(self) -> dict:
        def _iso(value):
            return value.isoformat() if value is not None else None

        return {
            "id": self.id,
            "hotel_id": self.hotel_id,
            "room_type_id": self.room_type_id,
            "room_id": self.room_id,
            "guest_id": self.guest_id,
            "status": self.status,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "num_adults": self.num_adults,
            "num_children": self.num_children,
            "total_price_cents": self.total_price_cents,
            "currency": self.currency,
            "payment_intent_ref": self.payment_intent_ref,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancellation_reason": self.cancellation_reason,
            "checked_in_at": _iso(self.checked_in_at),
            "checked_out_at": _iso(self.checked_out_at),
            "soft_hold_expires_at": _iso(self.soft_hold_expires_at),
        }


@dataclass(frozen=True)
class BookingStateChange:
    """One row of the booking state log."""

    booking_id: str
    from_state: str
    to_state: str
    event: str
    changed_at: datetime
    actor_id: Optional[str] = None
    reason: Optional[str] = None
