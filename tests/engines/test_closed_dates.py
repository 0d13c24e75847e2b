"""
Tests — Closed Date Checker
==============================
Half-open overlap, hotel-wide vs room-type closures, inactive ranges.
"""

from __future__ import annotations

from datetime import date

import pytest

from engines.hotel_booking_engine.closed_dates import (
    ClosedDateRange,
    check_closed_dates,
)


class _StubClosedDates:
    """Returns every range; the checker must do its own filtering."""

    def __init__(self, ranges):
        self.ranges = list(ranges)
        self.calls = []

    def fetch_closed_date_ranges(self, hotel_id, room_type_id=None):
        self.calls.append((hotel_id, room_type_id))
        return list(self.ranges)


HOTEL_WIDE = ClosedDateRange(
    hotel_id="hotel-1", start=date(2025, 7, 1), end=date(2025, 7, 5), reason="Renovation",
)


class TestClosedDateRange:
    def test_rejects_empty_range(self):
        with pytest.raises(ValueError, match="before end"):
            ClosedDateRange(hotel_id="hotel-1", start=date(2025, 7, 5), end=date(2025, 7, 5))

    def test_hotel_wide_flag(self):
        assert HOTEL_WIDE.is_hotel_wide
        assert not ClosedDateRange(
            hotel_id="hotel-1", start=date(2025, 7, 1), end=date(2025, 7, 2),
            room_type_id="rt-1",
        ).is_hotel_wide


class TestCheckClosedDates:
    def test_stay_inside_closure_is_closed(self):
        store = _StubClosedDates([HOTEL_WIDE])
        result = check_closed_dates(store, "hotel-1", date(2025, 7, 3), date(2025, 7, 4))

        assert result.is_closed is True
        assert result.overlapping_ranges[0].reason == "Renovation"
        assert result.to_dict()["overlapping_ranges"] == [
            {"start": "2025-07-01", "end": "2025-07-05", "reason": "Renovation"},
        ]

    def test_stay_starting_at_exclusive_end_is_open(self):
        store = _StubClosedDates([HOTEL_WIDE])
        result = check_closed_dates(store, "hotel-1", date(2025, 7, 5), date(2025, 7, 6))
        assert result.is_closed is False
        assert result.overlapping_ranges == []

    def test_stay_ending_at_closure_start_is_open(self):
        store = _StubClosedDates([HOTEL_WIDE])
        result = check_closed_dates(store, "hotel-1", date(2025, 6, 28), date(2025, 7, 1))
        assert result.is_closed is False

    def test_hotel_wide_closure_applies_to_every_room_type(self):
        store = _StubClosedDates([HOTEL_WIDE])
        for room_type_id in ("rt-1", "rt-2", None):
            result = check_closed_dates(
                store, "hotel-1", date(2025, 7, 2), date(2025, 7, 3), room_type_id,
            )
            assert result.is_closed

    def test_room_type_closure_only_applies_to_that_room_type(self):
        suite_only = ClosedDateRange(
            hotel_id="hotel-1", start=date(2025, 7, 1), end=date(2025, 7, 5),
            room_type_id="suite",
        )
        store = _StubClosedDates([suite_only])
        assert check_closed_dates(
            store, "hotel-1", date(2025, 7, 2), date(2025, 7, 3), "suite").is_closed
        assert not check_closed_dates(
            store, "hotel-1", date(2025, 7, 2), date(2025, 7, 3), "double").is_closed

    def test_inactive_and_foreign_ranges_ignored(self):
        store = _StubClosedDates([
            ClosedDateRange(hotel_id="hotel-1", start=date(2025, 7, 1),
                            end=date(2025, 7, 5), is_active=False),
            ClosedDateRange(hotel_id="hotel-2", start=date(2025, 7, 1),
                            end=date(2025, 7, 5)),
        ])
        result = check_closed_dates(store, "hotel-1", date(2025, 7, 2), date(2025, 7, 3))
        assert result.is_closed is False

    def test_ranges_reported_in_date_order(self):
        later = ClosedDateRange(hotel_id="hotel-1", start=date(2025, 7, 10),
                                end=date(2025, 7, 12), reason="Event")
        store = _StubClosedDates([later, HOTEL_WIDE])
        result = check_closed_dates(store, "hotel-1", date(2025, 7, 1), date(2025, 7, 15))
        assert [r.reason for r in result.overlapping_ranges] == ["Renovation", "Event"]

    def test_queries_store_with_room_type(self):
        store = _StubClosedDates([])
        check_closed_dates(store, "hotel-1", date(2025, 7, 1), date(2025, 7, 2), "rt-1")
        assert store.calls == [("hotel-1", "rt-1")]
