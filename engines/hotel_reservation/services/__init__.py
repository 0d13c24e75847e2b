"""
Hotelius Hotel Reservation Engine — Booking Store + Lifecycle Service
======================================================================
Every status change goes through the state machine and is written
with compare-and-swap on the status the service observed. A writer
that loses the swap re-reads the booking and re-validates the event
against whatever state won.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Sequence

from core.time.clock import Clock
from engines.hotel_reservation.booking import Booking, BookingStateChange
from engines.hotel_reservation.commands import TransitionBookingRequest, expire_request
from engines.hotel_reservation.errors import (
    BookingNotFoundError,
    BookingTransitionError,
    ConcurrentStatusUpdateError,
    InvalidTransitionError,
    MissingTransitionDataError,
)
from engines.hotel_reservation.events import (
    CANCEL, CHECK_IN, CHECK_OUT, PAYMENT_FAILED, PAYMENT_RECEIVED, PENDING,
)
from engines.hotel_reservation.occupancy import blocking_bookings, pick_free_room
from engines.hotel_reservation.policies import transition_data_policies
from engines.hotel_reservation.state_machine import validate_transition

logger = logging.getLogger("hotelius.reservations")

MAX_CAS_ATTEMPTS = 3


class BookingStore(Protocol):
    def load_booking(self, booking_id: str) -> Optional[Booking]:
        ...

    def compare_and_swap_status(
        self,
        booking_id: str,
        expected_status: str,
        new_status: str,
        changes: dict,
        state_change: Optional[BookingStateChange] = None,
    ) -> Optional[Booking]:
        """Apply status + changes only if status still equals expected_status.

        The state log row is written in the same unit as the status, so
        a failed log write leaves the status untouched. Returns the
        updated booking, or None when the swap lost.
        """
        ...

    def list_expired_holds(self, now: datetime) -> List[Booking]:
        ...

    def list_blocking_bookings(
        self, hotel_id: str, room_type_id: str, check_in: date, check_out: date,
        now: datetime,
    ) -> List[Booking]:
        """Bookings of the room type that hold a room for any night of the stay."""
        ...

    def insert_held_booking(
        self,
        booking: Booking,
        room_ids: Sequence[str],
        state_change: BookingStateChange,
        now: datetime,
    ) -> Optional[Booking]:
        """Assign the first free room in `room_ids` and insert the booking.

        Returns None when every room is taken for the stay.
        """
        ...


class InMemoryBookingStore:
    """
    Thread-safe in-memory BookingStore.
    The lock makes compare-and-swap atomic, same as the conditional
    UPDATE in the Django store.
    """

    def __init__(self, bookings: Optional[List[Booking]] = None):
        self._lock = threading.Lock()
        self._bookings: Dict[str, Booking] = {}
        self._state_log: List[BookingStateChange] = []
        for booking in bookings or []:
            self.add(booking)

    def add(self, booking: Booking) -> None:
        with self._lock:
            self._bookings[booking.id] = booking

    def load_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._bookings.get(booking_id)

    def compare_and_swap_status(self, booking_id, expected_status, new_status, changes,
                                state_change=None):
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None or current.status != expected_status:
                return None
            updated = current.with_changes(status=new_status, **changes)
            if state_change is not None:
                self._append_state_change(state_change)
            self._bookings[booking_id] = updated
            return updated

    def _append_state_change(self, change: BookingStateChange) -> None:
        self._state_log.append(change)

    def list_state_changes(self, booking_id: str) -> List[BookingStateChange]:
        with self._lock:
            return [c for c in self._state_log if c.booking_id == booking_id]

    def list_expired_holds(self, now: datetime) -> List[Booking]:
        with self._lock:
            return sorted(
                (
                    b for b in self._bookings.values()
                    if b.status == PENDING
                    and b.soft_hold_expires_at is not None
                    and b.soft_hold_expires_at < now
                ),
                key=lambda b: b.id,
            )

    def list_blocking_bookings(self, hotel_id, room_type_id, check_in, check_out, now):
        with self._lock:
            return self._blocking(hotel_id, room_type_id, check_in, check_out, now)

    def _blocking(self, hotel_id, room_type_id, check_in, check_out, now):
        return blocking_bookings(
            self._bookings.values(),
            hotel_id=hotel_id, room_type_id=room_type_id,
            check_in=check_in, check_out=check_out, now=now,
        )

    def insert_held_booking(self, booking, room_ids, state_change, now):
        with self._lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking {booking.id} already exists.")
            room_id = pick_free_room(room_ids, self._blocking(
                booking.hotel_id, booking.room_type_id,
                booking.check_in, booking.check_out, now,
            ))
            if room_id is None:
                return None
            held = booking.with_changes(room_id=room_id)
            self._append_state_change(state_change)
            self._bookings[held.id] = held
            return held


@dataclass(frozen=True)
class TransitionResult:
    booking: Booking
    event: str
    previous_state: str
    new_state: str
    changed: bool = True

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking.id,
            "event": self.event,
            "previous_state": self.previous_state,
            "new_state": self.new_state,
            "changed": self.changed,
        }


def _transition_changes(request: TransitionBookingRequest, now: datetime) -> dict:
    changes = {"updated_at": now}
    if request.event in (CANCEL, PAYMENT_FAILED):
        changes["cancelled_at"] = now
        changes["cancellation_reason"] = request.reason
    elif request.event == PAYMENT_RECEIVED:
        changes["payment_intent_ref"] = request.payment_ref
    elif request.event == CHECK_IN:
        changes["checked_in_at"] = now
    elif request.event == CHECK_OUT:
        changes["checked_out_at"] = now
    return changes


class BookingLifecycleService:
    def __init__(self, *, store: BookingStore, clock: Clock,
                 max_attempts: int = MAX_CAS_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1.")
        self._store = store
        self._clock = clock
        self._max_attempts = max_attempts

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._store.load_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    def apply_event(
        self,
        request: TransitionBookingRequest,
        *,
        noop_if_status: Optional[str] = None,
    ) -> TransitionResult:
        """
        Move a booking through `request.event`.

        noop_if_status: when the booking is already in this status the
        call returns changed=False instead of raising. Used by payment
        webhooks that may be redelivered after the booking moved.
        """
        violation = transition_data_policies(request)
        if violation:
            raise MissingTransitionDataError(violation, booking_id=request.booking_id)

        for attempt in range(1, self._max_attempts + 1):
            booking = self.get_booking(request.booking_id)

            if noop_if_status is not None and booking.status == noop_if_status:
                logger.info(
                    "booking %s already %s, skipping %s",
                    booking.id, booking.status, request.event,
                )
                return TransitionResult(
                    booking=booking, event=request.event,
                    previous_state=booking.status, new_state=booking.status,
                    changed=False,
                )

            validation = validate_transition(booking.status, request.event)
            if not validation.ok:
                raise InvalidTransitionError(
                    event=request.event,
                    current_state=booking.status,
                    available_actions=validation.available_actions,
                    booking_id=booking.id,
                )

            now = self._clock.now_utc()
            updated = self._store.compare_and_swap_status(
                booking.id, booking.status, validation.next_state,
                _transition_changes(request, now),
                BookingStateChange(
                    booking_id=booking.id,
                    from_state=booking.status,
                    to_state=validation.next_state,
                    event=request.event,
                    changed_at=now,
                    actor_id=request.actor_id,
                    reason=request.reason,
                ),
            )
            if updated is None:
                logger.debug(
                    "status swap lost for booking %s (attempt %d/%d)",
                    booking.id, attempt, self._max_attempts,
                )
                continue

            logger.info(
                "booking %s %s -> %s via %s",
                booking.id, booking.status, validation.next_state, request.event,
            )
            return TransitionResult(
                booking=updated, event=request.event,
                previous_state=booking.status, new_state=validation.next_state,
            )

        raise ConcurrentStatusUpdateError(
            f"Booking {request.booking_id} status changed concurrently "
            f"{self._max_attempts} times; giving up.",
            booking_id=request.booking_id,
        )


@dataclass
class HoldExpiryReport:
    expired: List[str] = field(default_factory=list)
    errors: List[dict] = field(default_factory=list)

    @property
    def expired_count(self) -> int:
        return len(self.expired)

    def to_dict(self) -> dict:
        return {
            "expired_count": self.expired_count,
            "expired": list(self.expired),
            "errors": list(self.errors),
        }


class HoldExpiryService:
    """Expires pending bookings whose soft hold has lapsed."""

    def __init__(self, *, store: BookingStore, lifecycle: BookingLifecycleService,
                 clock: Clock):
        self._store = store
        self._lifecycle = lifecycle
        self._clock = clock

    def expire_stale_holds(self) -> HoldExpiryReport:
        report = HoldExpiryReport()
        for booking in self._store.list_expired_holds(self._clock.now_utc()):
            try:
                self._lifecycle.apply_event(expire_request(booking.id))
            except BookingTransitionError as exc:
                logger.warning("could not expire booking %s: %s", booking.id, exc)
                report.errors.append({"booking_id": booking.id, **exc.to_dict()})
                continue
            report.expired.append(booking.id)
        if report.expired or report.errors:
            logger.info(
                "hold sweep expired %d booking(s), %d error(s)",
                report.expired_count, len(report.errors),
            )
        return report
