"""
Hotelius Hotel Booking Engine — Room Inventory
================================================
Physical rooms of a room type and how many of them a stay can
still take. Booked rooms are the bookings that block inventory for
any night of the stay (see hotel_reservation.occupancy).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Protocol, Sequence

from engines.hotel_reservation.booking import Booking


@dataclass(frozen=True)
class Room:
    id: str
    hotel_id: str
    room_type_id: str
    room_number: str
    is_available: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not self.hotel_id or not self.room_type_id:
            raise ValueError("hotel_id and room_type_id must be non-empty.")


class OccupancySource(Protocol):
    def list_blocking_bookings(
        self, hotel_id: str, room_type_id: str, check_in: date, check_out: date,
        now: datetime,
    ) -> List[Booking]: ...


@dataclass(frozen=True)
class RoomInventory:
    total_rooms: int
    booked_rooms: int

    @property
    def available_rooms(self) -> int:
        return max(self.total_rooms - self.booked_rooms, 0)

    def to_dict(self) -> dict:
        return {
            "total_rooms": self.total_rooms,
            "booked_rooms": self.booked_rooms,
            "available_rooms": self.available_rooms,
        }


def count_inventory(rooms: Sequence[Room], blocking: Sequence[Booking]) -> RoomInventory:
    return RoomInventory(total_rooms=len(rooms), booked_rooms=len(blocking))
