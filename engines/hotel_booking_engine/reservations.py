"""
Hotelius Hotel Booking Engine — Booking Creation
==================================================
Availability search → Rate quote → Reservation.

A new booking starts pending with a soft hold on one physical room.
The room is picked by the booking store in the same unit of work
that inserts the booking, so two guests racing for the last room
cannot both get it. Unpaid holds are expired by the hold sweep.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Mapping, Optional

from core.time.clock import Clock
from engines.hotel_booking_engine.errors import AvailabilityError, AvailabilityErrorCode
from engines.hotel_booking_engine.pricing import validate_booking_price
from engines.hotel_booking_engine.services import (
    NO_ROOMS_AVAILABLE_REASON,
    AvailabilityQuery,
    AvailabilityResolver,
    parse_count,
)
from engines.hotel_reservation.booking import Booking, BookingStateChange
from engines.hotel_reservation.events import PENDING
from engines.hotel_reservation.services import BookingStore

logger = logging.getLogger("hotelius.reservations")

DEFAULT_HOLD_MINUTES = 15
MIN_HOLD_MINUTES = 1
MAX_HOLD_MINUTES = 60

# State log event for the pending -> pending row written at creation.
BOOKING_CREATED = "CREATED"


@dataclass(frozen=True)
class CreateBookingRequest:
    hotel_id:             str
    room_type_id:         str
    guest_id:             str
    check_in:             date
    check_out:            date
    adults:               int = 1
    children:             int = 0
    expected_total_cents: Optional[int] = None
    hold_minutes:         int = DEFAULT_HOLD_MINUTES

    def __post_init__(self):
        if not self.hotel_id: raise ValueError("hotel_id must be non-empty.")
        if not self.room_type_id: raise ValueError("room_type_id must be non-empty.")
        if not self.guest_id: raise ValueError("guest_id must be non-empty.")
        if self.check_in >= self.check_out:
            raise ValueError("check_in must be before check_out.")
        if self.adults < 1:
            raise ValueError("adults must be >= 1.")
        if self.children < 0:
            raise ValueError("children must be >= 0.")
        if self.expected_total_cents is not None and self.expected_total_cents < 0:
            raise ValueError("expected_total_cents must be >= 0.")
        if not MIN_HOLD_MINUTES <= self.hold_minutes <= MAX_HOLD_MINUTES:
            raise ValueError(
                f"hold_minutes must be between {MIN_HOLD_MINUTES} and {MAX_HOLD_MINUTES}."
            )

    @property
    def query(self) -> AvailabilityQuery:
        return AvailabilityQuery(
            hotel_id=self.hotel_id,
            check_in=self.check_in,
            check_out=self.check_out,
            adults=self.adults,
            children=self.children,
        )

    @classmethod
    def from_params(cls, hotel_id: str, params: Mapping) -> CreateBookingRequest:
        """Build a request from a JSON body using the widget's camelCase keys."""
        room_type_id = params.get("roomTypeId")
        guest_id = params.get("guestId")
        if not isinstance(room_type_id, str) or not room_type_id:
            raise AvailabilityError(
                AvailabilityErrorCode.MISSING_PARAMETERS,
                "Missing required parameter: roomTypeId",
                {"parameter": "roomTypeId"},
            )
        if not isinstance(guest_id, str) or not guest_id:
            raise AvailabilityError(
                AvailabilityErrorCode.MISSING_PARAMETERS,
                "Missing required parameter: guestId",
                {"parameter": "guestId"},
            )
        query = AvailabilityQuery.from_params(hotel_id, params)

        expected_raw = params.get("expectedTotalCents")
        expected = None
        if expected_raw is not None:
            expected = parse_count(expected_raw, 0, 0, "expectedTotalCents")
        hold_minutes = parse_count(
            params.get("holdMinutes"), DEFAULT_HOLD_MINUTES, MIN_HOLD_MINUTES, "holdMinutes",
        )
        try:
            return cls(
                hotel_id=query.hotel_id,
                room_type_id=room_type_id,
                guest_id=guest_id,
                check_in=query.check_in,
                check_out=query.check_out,
                adults=query.adults,
                children=query.children,
                expected_total_cents=expected,
                hold_minutes=hold_minutes,
            )
        except ValueError as exc:
            raise AvailabilityError(AvailabilityErrorCode.INVALID_PARAMETERS, str(exc))


def _new_booking_id() -> str:
    return str(uuid.uuid4())


class BookingCreationService:
    def __init__(
        self,
        *,
        resolver: AvailabilityResolver,
        store: BookingStore,
        clock: Clock,
        id_factory: Callable[[], str] = _new_booking_id,
    ):
        self._resolver = resolver
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def create_booking(self, request: CreateBookingRequest) -> Booking:
        """
        Quote the room type, then insert a pending booking holding one room.

        Raises AvailabilityError: NO_AVAILABILITY when every room is taken,
        ROOM_TYPE_UNAVAILABLE when the stay is closed or restricted,
        PRICE_MISMATCH when the client's total drifted from the quote.
        """
        quote = self._resolver.quote_room_type(request.query, request.room_type_id)
        if not quote.is_available:
            if quote.unavailable_reason == NO_ROOMS_AVAILABLE_REASON:
                raise _no_availability(request)
            details = {"room_type_id": request.room_type_id,
                       "reason": quote.unavailable_reason}
            if quote.restriction_error is not None:
                details["restriction_error"] = quote.restriction_error
            if quote.closed_dates:
                details["closed_dates"] = list(quote.closed_dates)
            raise AvailabilityError(
                AvailabilityErrorCode.ROOM_TYPE_UNAVAILABLE,
                "Room type is not available for these dates",
                details,
            )

        pricing = quote.pricing
        if request.expected_total_cents is not None:
            check = validate_booking_price(
                request.expected_total_cents, pricing["total_cents"], pricing["nights"],
            )
            if not check.is_valid:
                raise AvailabilityError(
                    AvailabilityErrorCode.PRICE_MISMATCH,
                    "Price has changed, please review the new total",
                    {
                        "expected_total_cents": request.expected_total_cents,
                        "calculated_total_cents": check.calculated_total_cents,
                        "difference_cents": check.difference_cents,
                    },
                )

        now = self._clock.now_utc()
        booking = Booking(
            id=self._id_factory(),
            hotel_id=request.hotel_id,
            room_type_id=request.room_type_id,
            guest_id=request.guest_id,
            check_in=request.check_in,
            check_out=request.check_out,
            num_adults=request.adults,
            num_children=request.children,
            total_price_cents=pricing["total_cents"],
            currency=pricing["currency"],
            created_at=now,
            updated_at=now,
            status=PENDING,
            soft_hold_expires_at=now + timedelta(minutes=request.hold_minutes),
        )
        rooms = self._resolver.catalog.list_rooms(request.hotel_id, request.room_type_id)
        held = self._store.insert_held_booking(
            booking,
            [room.id for room in rooms],
            BookingStateChange(
                booking_id=booking.id,
                from_state=PENDING,
                to_state=PENDING,
                event=BOOKING_CREATED,
                changed_at=now,
                actor_id=request.guest_id,
                reason="Booking created",
            ),
            now,
        )
        if held is None:
            raise _no_availability(request)

        logger.info(
            "booking %s held room %s of %s until %s",
            held.id, held.room_id, held.room_type_id,
            held.soft_hold_expires_at.isoformat(),
        )
        return held


def _no_availability(request: CreateBookingRequest) -> AvailabilityError:
    return AvailabilityError(
        AvailabilityErrorCode.NO_AVAILABILITY,
        "No rooms available for selected dates",
        {
            "room_type_id": request.room_type_id,
            "check_in": request.check_in.isoformat(),
            "check_out": request.check_out.isoformat(),
        },
    )
