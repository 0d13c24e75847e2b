"""
Hotelius Hotel Booking Engine — Catalog Store + Availability Resolver
======================================================================
Pipeline for one availability request:

1. Preconditions fail the whole request (AvailabilityError):
   missing/invalid parameters, bad dates, past check-in, unknown hotel.
2. Candidate room types: active, and large enough for the party.
3. Each room type is evaluated independently on a thread pool:
   free rooms → closed dates → rate plan restrictions → price.
   An unexpected error degrades only that room type.
4. Results are split into available / unavailable.
"""
from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from core.config.rules import DEFAULT_PRICING_RULES, PricingRules
from core.time.clock import Clock, today_utc
from core.time.temporal import days_between
from engines.hotel_booking_engine.closed_dates import (
    ClosedDateRange, check_closed_dates,
)
from engines.hotel_booking_engine.errors import (
    AvailabilityError, AvailabilityErrorCode,
)
from engines.hotel_booking_engine.inventory import (
    OccupancySource, Room, RoomInventory, count_inventory,
)
from engines.hotel_booking_engine.pricing import (
    build_price_breakdown, calculate_stay_price, count_nights,
)
from engines.hotel_booking_engine.rate_plans import (
    DEFAULT_UNMATCHED_POLICY, RatePlan, RatePlanRestrictions,
    UnmatchedRatePlanPolicy, select_rate_plan, unmatched_plan_violation,
    validate_restrictions,
)

logger = logging.getLogger("hotelius.availability")

CLOSED_DATES_REASON = "closed_dates"
NO_ROOMS_AVAILABLE_REASON = "no_rooms_available"
ROOM_TYPE_INACTIVE_REASON = "room_type_inactive"
PARTY_TOO_LARGE_REASON = "party_too_large"
DEFAULT_MAX_WORKERS = 8


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Hotel:
    id: str
    name: str
    currency: str = "USD"

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("currency must be 3-letter ISO 4217 code.")


@dataclass(frozen=True)
class RoomType:
    id: str
    hotel_id: str
    name: str
    base_price_cents: int
    currency: str = "USD"
    max_adults: int = 2
    max_children: int = 0
    max_occupancy: int = 2
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not isinstance(self.base_price_cents, int) or self.base_price_cents < 0:
            raise ValueError("base_price_cents must be int >= 0.")
        for name in ("max_adults", "max_children", "max_occupancy"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be int >= 0.")
        if self.max_occupancy < 1:
            raise ValueError("max_occupancy must be >= 1.")

    def fits_party(self, adults: int, children: int) -> bool:
        return (
            adults <= self.max_adults
            and children <= self.max_children
            and adults + children <= self.max_occupancy
        )


class CatalogStore(Protocol):
    def fetch_hotel(self, hotel_id: str) -> Optional[Hotel]: ...

    def list_room_types(self, hotel_id: str) -> List[RoomType]: ...

    def fetch_room_type_base_price(self, room_type_id: str) -> int: ...

    def fetch_active_rate_plans(self, hotel_id: str, room_type_id: str) -> List[RatePlan]: ...

    def fetch_closed_date_ranges(
        self, hotel_id: str, room_type_id: Optional[str] = None
    ) -> List[ClosedDateRange]: ...

    def list_rooms(self, hotel_id: str, room_type_id: str) -> List[Room]:
        """Bookable rooms of the room type, ordered by room number."""
        ...


class InMemoryCatalogStore:
    """Catalog held in dicts; used by tests and local tooling."""

    def __init__(self):
        self._lock = threading.Lock()
        self._hotels: Dict[str, Hotel] = {}
        self._room_types: Dict[str, RoomType] = {}
        self._rate_plans: List[RatePlan] = []
        self._closed: List[ClosedDateRange] = []
        self._rooms: Dict[str, Room] = {}

    def add_hotel(self, hotel: Hotel) -> None:
        with self._lock:
            self._hotels[hotel.id] = hotel

    def add_room_type(self, room_type: RoomType) -> None:
        with self._lock:
            if room_type.hotel_id not in self._hotels:
                raise ValueError(f"Unknown hotel {room_type.hotel_id}.")
            self._room_types[room_type.id] = room_type

    def add_rate_plan(self, plan: RatePlan) -> None:
        with self._lock:
            self._rate_plans.append(plan)

    def add_closed_range(self, closed: ClosedDateRange) -> None:
        with self._lock:
            self._closed.append(closed)

    def add_room(self, room: Room) -> None:
        with self._lock:
            if room.room_type_id not in self._room_types:
                raise ValueError(f"Unknown room type {room.room_type_id}.")
            self._rooms[room.id] = room

    def fetch_hotel(self, hotel_id):
        with self._lock:
            return self._hotels.get(hotel_id)

    def list_room_types(self, hotel_id):
        with self._lock:
            return sorted(
                (rt for rt in self._room_types.values() if rt.hotel_id == hotel_id),
                key=lambda rt: rt.id,
            )

    def fetch_room_type_base_price(self, room_type_id):
        with self._lock:
            room_type = self._room_types.get(room_type_id)
        if room_type is None:
            raise LookupError(f"Unknown room type {room_type_id}.")
        return room_type.base_price_cents

    def fetch_active_rate_plans(self, hotel_id, room_type_id):
        with self._lock:
            return [
                p for p in self._rate_plans
                if p.is_active and p.hotel_id == hotel_id
                and p.room_type_id == room_type_id
            ]

    def fetch_closed_date_ranges(self, hotel_id, room_type_id=None):
        with self._lock:
            return [
                c for c in self._closed
                if c.is_active and c.hotel_id == hotel_id
                and (c.room_type_id is None or c.room_type_id == room_type_id)
            ]

    def list_rooms(self, hotel_id, room_type_id):
        with self._lock:
            return sorted(
                (
                    r for r in self._rooms.values()
                    if r.is_available and r.hotel_id == hotel_id
                    and r.room_type_id == room_type_id
                ),
                key=lambda r: (r.room_number, r.id),
            )


# ══════════════════════════════════════════════════════════════
# QUERY
# ══════════════════════════════════════════════════════════════

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _parse_date(raw) -> date:
    # Accept full ISO timestamps by keeping the calendar part only.
    if not isinstance(raw, str):
        raise ValueError(f"expected an ISO date string, got {type(raw).__name__}")
    calendar_part = raw.strip().split("T")[0]
    if not _ISO_DATE.fullmatch(calendar_part):
        raise ValueError(f"not a YYYY-MM-DD date: {raw!r}")
    return date.fromisoformat(calendar_part)


def parse_count(raw, default: int, minimum: int, name: str) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise AvailabilityError(
            AvailabilityErrorCode.MISSING_PARAMETERS,
            f"{name} must be a whole number",
            {"parameter": name},
        )
    if value < minimum:
        raise AvailabilityError(
            AvailabilityErrorCode.MISSING_PARAMETERS,
            f"{name} must be at least {minimum}",
            {"parameter": name},
        )
    return value


@dataclass(frozen=True)
class AvailabilityQuery:
    hotel_id: str
    check_in: date
    check_out: date
    adults: int = 1
    children: int = 0

    @property
    def total_guests(self) -> int:
        return self.adults + self.children

    @classmethod
    def from_params(cls, hotel_id: str, params: Mapping) -> AvailabilityQuery:
        """
        Build a query from raw request parameters (camelCase keys as sent
        by booking widgets). `guests` is accepted as an alias for `adults`.
        """
        check_in_raw = params.get("checkIn")
        check_out_raw = params.get("checkOut")
        if not hotel_id or not check_in_raw or not check_out_raw:
            raise AvailabilityError(
                AvailabilityErrorCode.MISSING_PARAMETERS,
                "Missing required parameters: checkIn and checkOut are required",
            )
        try:
            check_in = _parse_date(check_in_raw)
            check_out = _parse_date(check_out_raw)
        except ValueError:
            raise AvailabilityError(
                AvailabilityErrorCode.INVALID_DATE_FORMAT,
                "Invalid date format. Please use ISO 8601 format (YYYY-MM-DD)",
            )
        if check_in >= check_out:
            raise AvailabilityError(
                AvailabilityErrorCode.INVALID_DATE_RANGE,
                "Check-out date must be after check-in date",
            )

        adults_raw = params.get("adults") or params.get("guests")
        return cls(
            hotel_id=hotel_id,
            check_in=check_in,
            check_out=check_out,
            adults=parse_count(adults_raw, 1, 1, "adults"),
            children=parse_count(params.get("children"), 0, 0, "children"),
        )


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RoomTypeAvailability:
    room_type_id: str
    name: str
    is_available: bool
    max_adults: int = 0
    max_children: int = 0
    max_occupancy: int = 0
    unavailable_reason: Optional[str] = None
    closed_dates: List[dict] = field(default_factory=list)
    restriction_error: Optional[dict] = None
    pricing: Optional[dict] = None
    inventory: Optional[RoomInventory] = None

    def to_dict(self) -> dict:
        data = {
            "room_type_id": self.room_type_id,
            "name": self.name,
            "max_adults": self.max_adults,
            "max_children": self.max_children,
            "max_occupancy": self.max_occupancy,
            "is_available": self.is_available,
        }
        if self.inventory is not None:
            data.update(self.inventory.to_dict())
        if self.is_available:
            data["pricing"] = self.pricing
        else:
            data["unavailable_reason"] = self.unavailable_reason
            if self.closed_dates:
                data["closed_dates"] = list(self.closed_dates)
            if self.restriction_error is not None:
                data["restriction_error"] = self.restriction_error
        return data


@dataclass(frozen=True)
class AvailabilityResult:
    hotel: Hotel
    query: AvailabilityQuery
    nights: int
    days_in_advance: int
    available_room_types: List[RoomTypeAvailability]
    unavailable_room_types: List[RoomTypeAvailability]

    @property
    def has_availability(self) -> bool:
        return len(self.available_room_types) > 0

    def to_dict(self) -> dict:
        return {
            "hotel_id": self.hotel.id,
            "hotel_name": self.hotel.name,
            "check_in": self.query.check_in.isoformat(),
            "check_out": self.query.check_out.isoformat(),
            "nights": self.nights,
            "days_in_advance": self.days_in_advance,
            "guests": {
                "adults": self.query.adults,
                "children": self.query.children,
                "total": self.query.total_guests,
            },
            "availability": {
                "has_availability": self.has_availability,
                "available_room_types": [r.to_dict() for r in self.available_room_types],
                "unavailable_room_types": [r.to_dict() for r in self.unavailable_room_types],
            },
        }


# ══════════════════════════════════════════════════════════════
# RESOLVER
# ══════════════════════════════════════════════════════════════

class AvailabilityResolver:
    """
    Answers availability for one hotel and stay.

    release_connections: called by each worker thread after it evaluates
    a room type, so per-thread resources (database connections) opened
    by the catalog or occupancy source do not outlive the task.
    """

    def __init__(
        self,
        *,
        catalog: CatalogStore,
        occupancy: OccupancySource,
        clock: Clock,
        rules: PricingRules = DEFAULT_PRICING_RULES,
        unmatched_policy: UnmatchedRatePlanPolicy = DEFAULT_UNMATCHED_POLICY,
        max_workers: int = DEFAULT_MAX_WORKERS,
        release_connections: Optional[Callable[[], None]] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1.")
        self._catalog = catalog
        self._occupancy = occupancy
        self._clock = clock
        self._rules = rules
        self._unmatched_policy = UnmatchedRatePlanPolicy(unmatched_policy)
        self._max_workers = max_workers
        self._release_connections = release_connections

    @property
    def catalog(self) -> CatalogStore:
        return self._catalog

    def _preconditions(self, query: AvailabilityQuery):
        today = today_utc(self._clock)
        if query.check_in < today:
            raise AvailabilityError(
                AvailabilityErrorCode.PAST_CHECK_IN,
                "Check-in date cannot be in the past",
                {"check_in": query.check_in.isoformat(), "today": today.isoformat()},
            )
        nights = count_nights(query.check_in, query.check_out)
        days_in_advance = days_between(today, query.check_in)

        hotel = self._catalog.fetch_hotel(query.hotel_id)
        if hotel is None:
            raise AvailabilityError(
                AvailabilityErrorCode.HOTEL_NOT_FOUND,
                "Hotel not found",
                {"hotel_id": query.hotel_id},
            )
        return hotel, nights, days_in_advance

    def check_availability(self, query: AvailabilityQuery) -> AvailabilityResult:
        hotel, nights, days_in_advance = self._preconditions(query)

        candidates = [
            rt for rt in self._catalog.list_room_types(hotel.id)
            if rt.is_active and rt.fits_party(query.adults, query.children)
        ]
        evaluated = self._evaluate_all(candidates, query, nights, days_in_advance)

        result = AvailabilityResult(
            hotel=hotel,
            query=query,
            nights=nights,
            days_in_advance=days_in_advance,
            available_room_types=[r for r in evaluated if r.is_available],
            unavailable_room_types=[r for r in evaluated if not r.is_available],
        )
        logger.info(
            f"availability hotel={hotel.id} {query.check_in}..{query.check_out} "
            f"candidates={len(candidates)} available={len(result.available_room_types)}"
        )
        return result

    def quote_room_type(self, query: AvailabilityQuery, room_type_id: str) -> RoomTypeAvailability:
        """Evaluate a single room type of the hotel for a booking attempt."""
        hotel, nights, days_in_advance = self._preconditions(query)
        room_type = next(
            (rt for rt in self._catalog.list_room_types(hotel.id) if rt.id == room_type_id),
            None,
        )
        if room_type is None:
            raise AvailabilityError(
                AvailabilityErrorCode.ROOM_TYPE_NOT_FOUND,
                "Room type not found",
                {"hotel_id": hotel.id, "room_type_id": room_type_id},
            )
        if not room_type.is_active:
            return _unavailable(room_type, ROOM_TYPE_INACTIVE_REASON)
        if not room_type.fits_party(query.adults, query.children):
            return _unavailable(room_type, PARTY_TOO_LARGE_REASON)
        return self.evaluate_room_type(room_type, query, nights, days_in_advance)

    def room_inventory(self, room_type: RoomType, query: AvailabilityQuery) -> RoomInventory:
        rooms = self._catalog.list_rooms(query.hotel_id, room_type.id)
        blocking = self._occupancy.list_blocking_bookings(
            query.hotel_id, room_type.id, query.check_in, query.check_out,
            self._clock.now_utc(),
        )
        return count_inventory(rooms, blocking)

    def _evaluate_all(self, room_types, query, nights, days_in_advance):
        if not room_types:
            return []
        workers = min(self._max_workers, len(room_types))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (rt, executor.submit(
                    self._evaluate_in_worker, rt, query, nights, days_in_advance))
                for rt in room_types
            ]
            results = []
            for room_type, future in futures:
                try:
                    results.append(future.result())
                except Exception:
                    logger.exception(
                        f"availability evaluation failed for room type {room_type.id}"
                    )
                    results.append(_unavailable(
                        room_type, AvailabilityErrorCode.INTERNAL_ERROR.value,
                    ))
            return results

    def _evaluate_in_worker(self, room_type, query, nights, days_in_advance):
        try:
            return self.evaluate_room_type(room_type, query, nights, days_in_advance)
        finally:
            if self._release_connections is not None:
                self._release_connections()

    def evaluate_room_type(
        self,
        room_type: RoomType,
        query: AvailabilityQuery,
        nights: int,
        days_in_advance: int,
    ) -> RoomTypeAvailability:
        inventory = self.room_inventory(room_type, query)
        if inventory.available_rooms == 0:
            return _unavailable(room_type, NO_ROOMS_AVAILABLE_REASON, inventory=inventory)

        closed = check_closed_dates(
            self._catalog, query.hotel_id, query.check_in, query.check_out,
            room_type.id,
        )
        if closed.is_closed:
            return _unavailable(
                room_type, CLOSED_DATES_REASON, inventory=inventory,
                closed_dates=[r.to_dict() for r in closed.overlapping_ranges],
            )

        plan = select_rate_plan(
            self._catalog.fetch_active_rate_plans(query.hotel_id, room_type.id),
            query.check_in, days_in_advance,
        )
        if plan is None:
            violation = unmatched_plan_violation(self._unmatched_policy)
        else:
            violation = validate_restrictions(
                RatePlanRestrictions.from_plan(plan), nights, days_in_advance,
            )
        if violation is not None:
            return _unavailable(
                room_type, violation.code, inventory=inventory,
                restriction_error=violation.to_dict(),
            )

        base_price = self._catalog.fetch_room_type_base_price(room_type.id)
        nightly_rate = plan.price_per_night_cents if plan else base_price
        price = calculate_stay_price(nightly_rate, nights, self._rules)
        breakdown = build_price_breakdown(
            base_price, price, plan.name if plan else None, self._rules,
        )
        return RoomTypeAvailability(
            room_type_id=room_type.id,
            name=room_type.name,
            is_available=True,
            max_adults=room_type.max_adults,
            max_children=room_type.max_children,
            max_occupancy=room_type.max_occupancy,
            inventory=inventory,
            pricing={
                "nights": nights,
                "base_price_cents": base_price,
                "nightly_rate_cents": nightly_rate,
                "applied_rate_plan_id": plan.id if plan else None,
                "subtotal_cents": price.subtotal_cents,
                "tax_cents": price.tax_cents,
                "total_cents": price.total_cents,
                "currency": room_type.currency,
                "breakdown": [line.to_dict() for line in breakdown],
            },
        )


def _unavailable(room_type: RoomType, reason: str, *, inventory=None, closed_dates=None,
                 restriction_error=None) -> RoomTypeAvailability:
    return RoomTypeAvailability(
        room_type_id=room_type.id,
        name=room_type.name,
        is_available=False,
        max_adults=room_type.max_adults,
        max_children=room_type.max_children,
        max_occupancy=room_type.max_occupancy,
        unavailable_reason=reason,
        closed_dates=closed_dates or [],
        restriction_error=restriction_error,
        inventory=inventory,
    )
