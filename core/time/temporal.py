"""
Hotelius Core Time — Date Ranges
==================================
Pure functions for calendar-date interval logic.
Stays, rate plan validity windows and closures are all
half-open ranges [start, end): the end date is not included.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


# ══════════════════════════════════════════════════════════════
# DATE RANGE (half-open [start, end))
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """
    A half-open date interval [start, end).

    Invariant: start < end (enforced at construction).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"DateRange start ({self.start}) must be before end ({self.end})."
            )

    def contains(self, day: date) -> bool:
        """Check if a date falls within the range (end exclusive)."""
        return self.start <= day < self.end

    def overlaps(self, other: DateRange) -> bool:
        """Standard half-open overlap test."""
        return ranges_overlap(self.start, self.end, other.start, other.end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def ranges_overlap(
    stored_start: date, stored_end: date,
    requested_start: date, requested_end: date,
) -> bool:
    """
    True when [stored_start, stored_end) and [requested_start, requested_end)
    share at least one day.
    """
    return stored_start < requested_end and stored_end > requested_start


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end precedes start)."""
    return (end - start).days


def sunday_based_weekday(day: date) -> int:
    """Weekday index with 0 = Sunday … 6 = Saturday."""
    return (day.weekday() + 1) % 7
