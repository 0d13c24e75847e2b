"""
Hotelius Hotel Booking Engine — Rate Plans
============================================
Selection: active plans ordered by priority (highest first), ties
broken by plan id ascending; the first plan whose validity window,
advance-booking bounds and weekdays all admit the stay wins.

The selected plan then supplies stay-length and advance-booking
restrictions. When nothing matches, UnmatchedRatePlanPolicy decides
whether the room type is unrestricted at its base price or rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from core.time.temporal import sunday_based_weekday
from engines.hotel_booking_engine.errors import AvailabilityErrorCode

logger = logging.getLogger("hotelius.availability")


class UnmatchedRatePlanPolicy(str, Enum):
    UNRESTRICTED = "unrestricted"
    REJECT = "reject"


DEFAULT_UNMATCHED_POLICY = UnmatchedRatePlanPolicy.UNRESTRICTED

NO_RATE_PLAN = "no_rate_plan"


def _check_optional_bound(name: str, value: Optional[int], minimum: int) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise ValueError(f"{name} must be None or int >= {minimum}.")


@dataclass(frozen=True)
class RatePlan:
    id: str
    hotel_id: str
    room_type_id: str
    name: str
    price_per_night_cents: int
    valid_from: date
    valid_to: date
    priority: int = 0
    min_stay_nights: Optional[int] = None
    max_stay_nights: Optional[int] = None
    min_advance_booking_days: Optional[int] = None
    max_advance_booking_days: Optional[int] = None
    applicable_days_of_week: Optional[FrozenSet[int]] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not isinstance(self.price_per_night_cents, int) or self.price_per_night_cents < 0:
            raise ValueError("price_per_night_cents must be int >= 0.")
        if self.valid_from >= self.valid_to:
            raise ValueError("valid_from must be before valid_to.")
        _check_optional_bound("min_stay_nights", self.min_stay_nights, 1)
        _check_optional_bound("max_stay_nights", self.max_stay_nights, 1)
        _check_optional_bound("min_advance_booking_days", self.min_advance_booking_days, 0)
        _check_optional_bound("max_advance_booking_days", self.max_advance_booking_days, 0)
        if (self.min_stay_nights is not None and self.max_stay_nights is not None
                and self.min_stay_nights > self.max_stay_nights):
            raise ValueError("min_stay_nights must not exceed max_stay_nights.")
        if self.applicable_days_of_week is not None:
            days = frozenset(self.applicable_days_of_week)
            if not days or any(d not in range(7) for d in days):
                raise ValueError("applicable_days_of_week must hold values 0..6 (0=Sunday).")
            object.__setattr__(self, "applicable_days_of_week", days)

    def is_valid_on(self, day: date) -> bool:
        return self.valid_from <= day < self.valid_to

    def admits_advance(self, days_in_advance: int) -> bool:
        if (self.min_advance_booking_days is not None
                and days_in_advance < self.min_advance_booking_days):
            return False
        if (self.max_advance_booking_days is not None
                and days_in_advance > self.max_advance_booking_days):
            return False
        return True

    def applies_on_weekday(self, day: date) -> bool:
        if self.applicable_days_of_week is None:
            return True
        return sunday_based_weekday(day) in self.applicable_days_of_week

    def matches(self, check_in: date, days_in_advance: int) -> bool:
        return (
            self.is_active
            and self.is_valid_on(check_in)
            and self.admits_advance(days_in_advance)
            and self.applies_on_weekday(check_in)
        )


def order_by_priority(plans: Iterable[RatePlan]):
    return sorted(plans, key=lambda p: (-p.priority, p.id))


def select_rate_plan(
    plans: Iterable[RatePlan], check_in: date, days_in_advance: int
) -> Optional[RatePlan]:
    for plan in order_by_priority(plans):
        if plan.matches(check_in, days_in_advance):
            logger.debug(
                "rate plan %s (priority %d) selected for check-in %s",
                plan.id, plan.priority, check_in,
            )
            return plan
    return None


# ══════════════════════════════════════════════════════════════
# RESTRICTIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RatePlanRestrictions:
    min_stay_nights: Optional[int] = None
    max_stay_nights: Optional[int] = None
    min_advance_booking_days: Optional[int] = None
    max_advance_booking_days: Optional[int] = None
    price_per_night_cents: Optional[int] = None

    @classmethod
    def from_plan(cls, plan: RatePlan) -> RatePlanRestrictions:
        return cls(
            min_stay_nights=plan.min_stay_nights,
            max_stay_nights=plan.max_stay_nights,
            min_advance_booking_days=plan.min_advance_booking_days,
            max_advance_booking_days=plan.max_advance_booking_days,
            price_per_night_cents=plan.price_per_night_cents,
        )


@dataclass(frozen=True)
class RestrictionViolation:
    code: str
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def validate_restrictions(
    restrictions: Optional[RatePlanRestrictions],
    nights: int,
    days_in_advance: int,
) -> Optional[RestrictionViolation]:
    """First violated restriction, or None. No restrictions means no violation."""
    if restrictions is None:
        return None

    r = restrictions
    if r.min_stay_nights is not None and nights < r.min_stay_nights:
        return RestrictionViolation(
            code=AvailabilityErrorCode.MINIMUM_STAY_NOT_MET.value,
            message=f"Minimum stay of {_plural(r.min_stay_nights, 'night')} required for this rate",
            details={"requested_nights": nights, "required_minimum": r.min_stay_nights},
        )
    if r.max_stay_nights is not None and nights > r.max_stay_nights:
        return RestrictionViolation(
            code=AvailabilityErrorCode.MAXIMUM_STAY_EXCEEDED.value,
            message=f"Maximum stay of {_plural(r.max_stay_nights, 'night')} allowed for this rate",
            details={"requested_nights": nights, "allowed_maximum": r.max_stay_nights},
        )
    if r.min_advance_booking_days is not None and days_in_advance < r.min_advance_booking_days:
        return RestrictionViolation(
            code=AvailabilityErrorCode.ADVANCE_BOOKING_TOO_SOON.value,
            message=(
                "This rate requires booking at least "
                f"{_plural(r.min_advance_booking_days, 'day')} in advance"
            ),
            details={
                "days_in_advance": days_in_advance,
                "required_minimum": r.min_advance_booking_days,
            },
        )
    if r.max_advance_booking_days is not None and days_in_advance > r.max_advance_booking_days:
        return RestrictionViolation(
            code=AvailabilityErrorCode.ADVANCE_BOOKING_TOO_FAR.value,
            message=(
                "This rate can only be booked up to "
                f"{_plural(r.max_advance_booking_days, 'day')} in advance"
            ),
            details={
                "days_in_advance": days_in_advance,
                "allowed_maximum": r.max_advance_booking_days,
            },
        )
    return None


def unmatched_plan_violation(
    policy: UnmatchedRatePlanPolicy,
) -> Optional[RestrictionViolation]:
    if policy is UnmatchedRatePlanPolicy.REJECT:
        return RestrictionViolation(
            code=NO_RATE_PLAN,
            message="No rate plan is available for the requested stay",
        )
    return None
