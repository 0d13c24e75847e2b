"""
Hotelius Core Time — Public API
=================================
Explicit clock protocol and date-range helpers.
Doctrine: NO datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    today_utc,
)
from core.time.temporal import (
    DateRange,
    days_between,
    ranges_overlap,
    sunday_based_weekday,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "today_utc",
    "DateRange",
    "days_between",
    "ranges_overlap",
    "sunday_based_weekday",
]
