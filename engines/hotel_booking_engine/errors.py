"""
Hotelius Hotel Booking Engine — Availability Errors
=====================================================
Codes are part of the public API: UIs map them to localized
messages, so they never change once published.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AvailabilityErrorCode(str, Enum):
    MISSING_PARAMETERS = "MISSING_PARAMETERS"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    PAST_CHECK_IN = "PAST_CHECK_IN"
    MINIMUM_STAY_NOT_MET = "MINIMUM_STAY_NOT_MET"
    MAXIMUM_STAY_EXCEEDED = "MAXIMUM_STAY_EXCEEDED"
    ADVANCE_BOOKING_TOO_SOON = "ADVANCE_BOOKING_TOO_SOON"
    ADVANCE_BOOKING_TOO_FAR = "ADVANCE_BOOKING_TOO_FAR"
    CLOSED_DATES = "CLOSED_DATES"
    HOTEL_NOT_FOUND = "HOTEL_NOT_FOUND"
    ROOM_TYPE_NOT_FOUND = "ROOM_TYPE_NOT_FOUND"
    ROOM_TYPE_UNAVAILABLE = "ROOM_TYPE_UNAVAILABLE"
    NO_AVAILABILITY = "NO_AVAILABILITY"
    PRICE_MISMATCH = "PRICE_MISMATCH"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_HTTP_STATUS = {
    AvailabilityErrorCode.HOTEL_NOT_FOUND: 404,
    AvailabilityErrorCode.ROOM_TYPE_NOT_FOUND: 404,
    AvailabilityErrorCode.ROOM_TYPE_UNAVAILABLE: 409,
    AvailabilityErrorCode.NO_AVAILABILITY: 409,
    AvailabilityErrorCode.PRICE_MISMATCH: 409,
    AvailabilityErrorCode.INTERNAL_ERROR: 500,
}


class AvailabilityError(Exception):
    """A whole-request availability failure."""

    def __init__(
        self,
        code: AvailabilityErrorCode,
        message: str,
        details: Optional[dict] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = AvailabilityErrorCode(code)
        self.message = message
        self.details = details or {}
        self.http_status = http_status or _HTTP_STATUS.get(self.code, 400)

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": dict(self.details),
        }
