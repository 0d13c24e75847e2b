"""
Hotelius Hotel Reservation Engine — Booking States, Events and Metadata
=========================================================================
Engine: hotel_reservation
Scope:  Booking lifecycle — payment confirmation, cancellation,
        expiry, check-in, check-out, no-show.
        Statuses are persisted as these lowercase strings.
"""

from __future__ import annotations

from types import MappingProxyType

# ── Booking statuses ──────────────────────────────────────────
PENDING     = "pending"
CONFIRMED   = "confirmed"
CHECKED_IN  = "checked_in"
CHECKED_OUT = "checked_out"
CANCELLED   = "cancelled"
NO_SHOW     = "no_show"
EXPIRED     = "expired"

BOOKING_STATES = (
    PENDING, CONFIRMED, CHECKED_IN,
    CHECKED_OUT, CANCELLED, NO_SHOW, EXPIRED,
)
INITIAL_STATE = PENDING
TERMINAL_STATES = frozenset({CHECKED_OUT, CANCELLED, NO_SHOW, EXPIRED})

# ── Lifecycle events ──────────────────────────────────────────
PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
PAYMENT_FAILED   = "PAYMENT_FAILED"
PAYMENT_TIMEOUT  = "PAYMENT_TIMEOUT"
CANCEL           = "CANCEL"
CHECK_IN         = "CHECK_IN"
CHECK_OUT        = "CHECK_OUT"
MARK_NO_SHOW     = "MARK_NO_SHOW"
EXPIRE           = "EXPIRE"

BOOKING_EVENTS = (
    PAYMENT_RECEIVED, PAYMENT_FAILED, PAYMENT_TIMEOUT, CANCEL,
    CHECK_IN, CHECK_OUT, MARK_NO_SHOW, EXPIRE,
)

# state → {event → next state}. Terminal states map to nothing.
STATE_TRANSITIONS = MappingProxyType({
    PENDING: MappingProxyType({
        PAYMENT_RECEIVED: CONFIRMED,
        PAYMENT_FAILED:   CANCELLED,
        PAYMENT_TIMEOUT:  EXPIRED,
        CANCEL:           CANCELLED,
        EXPIRE:           EXPIRED,
    }),
    CONFIRMED: MappingProxyType({
        CHECK_IN:     CHECKED_IN,
        CANCEL:       CANCELLED,
        MARK_NO_SHOW: NO_SHOW,
    }),
    CHECKED_IN: MappingProxyType({
        CHECK_OUT: CHECKED_OUT,
    }),
    CHECKED_OUT: MappingProxyType({}),
    CANCELLED:   MappingProxyType({}),
    NO_SHOW:     MappingProxyType({}),
    EXPIRED:     MappingProxyType({}),
})


# ══════════════════════════════════════════════════════════════
# EVENT METADATA
# ══════════════════════════════════════════════════════════════

EVENT_METADATA = MappingProxyType({
    PAYMENT_RECEIVED: {
        "label": "Payment Received",
        "description": "Payment has been successfully processed",
        "automated": False,
        "requires_reason": False,
        "requires_payment_reference": True,
    },
    PAYMENT_FAILED: {
        "label": "Payment Failed",
        "description": "Payment processing failed",
        "automated": False,
        "requires_reason": True,
        "requires_payment_reference": False,
    },
    PAYMENT_TIMEOUT: {
        "label": "Payment Timeout",
        "description": "Payment window expired without completion",
        "automated": True,
        "requires_reason": False,
        "requires_payment_reference": False,
    },
    CANCEL: {
        "label": "Cancel Booking",
        "description": "Booking cancelled by guest or hotel",
        "automated": False,
        "requires_reason": True,
        "requires_payment_reference": False,
    },
    CHECK_IN: {
        "label": "Check In",
        "description": "Guest has checked in to the hotel",
        "automated": False,
        "requires_reason": False,
        "requires_payment_reference": False,
    },
    CHECK_OUT: {
        "label": "Check Out",
        "description": "Guest has checked out from the hotel",
        "automated": False,
        "requires_reason": False,
        "requires_payment_reference": False,
    },
    MARK_NO_SHOW: {
        "label": "Mark as No-Show",
        "description": "Guest did not arrive for their reservation",
        "automated": False,
        "requires_reason": False,
        "requires_payment_reference": False,
    },
    EXPIRE: {
        "label": "Expire",
        "description": "Booking expired (soft hold timeout)",
        "automated": True,
        "requires_reason": False,
        "requires_payment_reference": False,
    },
})

STATE_METADATA = MappingProxyType({
    PENDING:     {"label": "Pending Payment", "description": "Awaiting payment confirmation", "is_active": True},
    CONFIRMED:   {"label": "Confirmed",       "description": "Payment received, booking confirmed", "is_active": True},
    CHECKED_IN:  {"label": "Checked In",      "description": "Guest has checked in", "is_active": True},
    CHECKED_OUT: {"label": "Checked Out",     "description": "Guest has checked out", "is_active": False},
    CANCELLED:   {"label": "Cancelled",       "description": "Booking was cancelled", "is_active": False},
    NO_SHOW:     {"label": "No Show",         "description": "Guest did not arrive", "is_active": False},
    EXPIRED:     {"label": "Expired",         "description": "Booking expired without payment", "is_active": False},
})


def is_automated_event(event: str) -> bool:
    meta = EVENT_METADATA.get(event)
    return bool(meta and meta["automated"])


def requires_reason(event: str) -> bool:
    meta = EVENT_METADATA.get(event)
    return bool(meta and meta["requires_reason"])


def requires_payment_reference(event: str) -> bool:
    meta = EVENT_METADATA.get(event)
    return bool(meta and meta["requires_payment_reference"])


def event_label(event: str) -> str:
    meta = EVENT_METADATA.get(event)
    return meta["label"] if meta else event


def state_label(state: str) -> str:
    meta = STATE_METADATA.get(state)
    return meta["label"] if meta else state
