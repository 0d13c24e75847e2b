"""
Hotelius Hotel Booking Engine — Closed Dates
==============================================
A closure blocks new bookings for a whole hotel (room_type_id=None)
or for one room type. Closures and stays are half-open [start, end).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Protocol

from core.time.temporal import ranges_overlap


@dataclass(frozen=True)
class ClosedDateRange:
    hotel_id: str
    start: date
    end: date
    room_type_id: Optional[str] = None
    reason: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.hotel_id:
            raise ValueError("hotel_id must be non-empty.")
        if self.start >= self.end:
            raise ValueError("closed range start must be before end.")

    @property
    def is_hotel_wide(self) -> bool:
        return self.room_type_id is None


@dataclass(frozen=True)
class ClosedRangeView:
    start: date
    end: date
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ClosedDateCheck:
    is_closed: bool
    overlapping_ranges: List[ClosedRangeView] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_closed": self.is_closed,
            "overlapping_ranges": [r.to_dict() for r in self.overlapping_ranges],
        }


class ClosedDateSource(Protocol):
    def fetch_closed_date_ranges(
        self, hotel_id: str, room_type_id: Optional[str] = None
    ) -> List[ClosedDateRange]:
        ...


def filter_overlapping(
    ranges: List[ClosedDateRange],
    hotel_id: str,
    check_in: date,
    check_out: date,
    room_type_id: Optional[str] = None,
) -> List[ClosedDateRange]:
    """Active ranges of the hotel that overlap the stay and apply to the room type."""
    return [
        r for r in ranges
        if r.is_active
        and r.hotel_id == hotel_id
        and (r.room_type_id is None or r.room_type_id == room_type_id)
        and ranges_overlap(r.start, r.end, check_in, check_out)
    ]


def check_closed_dates(
    store: ClosedDateSource,
    hotel_id: str,
    check_in: date,
    check_out: date,
    room_type_id: Optional[str] = None,
) -> ClosedDateCheck:
    ranges = filter_overlapping(
        store.fetch_closed_date_ranges(hotel_id, room_type_id),
        hotel_id, check_in, check_out, room_type_id,
    )
    ranges.sort(key=lambda r: (r.start, r.end))
    return ClosedDateCheck(
        is_closed=bool(ranges),
        overlapping_ranges=[ClosedRangeView(r.start, r.end, r.reason) for r in ranges],
    )
