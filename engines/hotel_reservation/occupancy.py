"""
Hotelius Hotel Reservation Engine — Room Occupancy
====================================================
Which bookings hold a room for a stay, and which room a new
booking may take.

A booking blocks inventory while it is pending, confirmed or
checked in. A pending booking whose soft hold has lapsed no longer
blocks; the hold sweep will expire it.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from core.time.temporal import ranges_overlap
from engines.hotel_reservation.booking import Booking
from engines.hotel_reservation.events import CHECKED_IN, CONFIRMED, PENDING

BLOCKING_STATUSES = frozenset({PENDING, CONFIRMED, CHECKED_IN})


def blocks_inventory(booking: Booking, now: datetime) -> bool:
    if booking.status not in BLOCKING_STATUSES:
        return False
    if booking.status == PENDING and booking.soft_hold_expires_at is not None:
        return booking.soft_hold_expires_at > now
    return True


def overlaps_stay(booking: Booking, check_in: date, check_out: date) -> bool:
    return ranges_overlap(booking.check_in, booking.check_out, check_in, check_out)


def blocking_bookings(
    bookings: Iterable[Booking],
    *,
    hotel_id: str,
    room_type_id: str,
    check_in: date,
    check_out: date,
    now: datetime,
) -> List[Booking]:
    return [
        b for b in bookings
        if b.hotel_id == hotel_id
        and b.room_type_id == room_type_id
        and overlaps_stay(b, check_in, check_out)
        and blocks_inventory(b, now)
    ]


def pick_free_room(room_ids: Sequence[str], blocking: Sequence[Booking]) -> Optional[str]:
    """
    First room in `room_ids` not assigned to a blocking booking.

    Bookings without a room assignment still consume one unit of the
    room type, so no room is free once they fill the remainder.
    """
    if len(blocking) >= len(room_ids):
        return None
    taken = {b.room_id for b in blocking if b.room_id}
    for room_id in room_ids:
        if room_id not in taken:
            return room_id
    return None
