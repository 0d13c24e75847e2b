"""
Hotelius Integration — Stripe Payment Handlers
================================================
Booking-payment events mapped onto lifecycle events:

    payment_intent.succeeded       → PAYMENT_RECEIVED
    payment_intent.payment_failed  → PAYMENT_FAILED
    checkout.session.completed     → PAYMENT_RECEIVED (payment_status == "paid")

The booking id travels in the object's metadata as `reservationId`.
Events without it are logged and ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from engines.hotel_reservation.commands import TransitionBookingRequest
from engines.hotel_reservation.events import (
    CANCELLED, CONFIRMED, PAYMENT_FAILED, PAYMENT_RECEIVED,
)
from engines.hotel_reservation.services import BookingLifecycleService
from integration.inbound import WebhookHandlerRegistry

logger = logging.getLogger("hotelius.webhooks")

PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"
CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

STRIPE_ACTOR = "system.stripe"
DEFAULT_FAILURE_REASON = "Payment failed"


def event_object(event: Dict[str, Any]) -> Dict[str, Any]:
    return (event.get("data") or {}).get("object") or {}


def reservation_id(obj: Dict[str, Any]) -> Optional[str]:
    return (obj.get("metadata") or {}).get("reservationId")


class StripePaymentHandlers:
    def __init__(self, lifecycle: BookingLifecycleService):
        self._lifecycle = lifecycle

    def payment_intent_succeeded(self, event: Dict[str, Any]) -> None:
        intent = event_object(event)
        booking_id = reservation_id(intent)
        if not booking_id:
            logger.warning(f"payment intent {intent.get('id')} has no reservationId")
            return
        self._lifecycle.apply_event(
            TransitionBookingRequest(
                booking_id, PAYMENT_RECEIVED,
                actor_id=STRIPE_ACTOR, payment_ref=intent.get("id"),
            ),
            noop_if_status=CONFIRMED,
        )

    def payment_intent_failed(self, event: Dict[str, Any]) -> None:
        intent = event_object(event)
        booking_id = reservation_id(intent)
        if not booking_id:
            logger.warning(f"payment intent {intent.get('id')} has no reservationId")
            return
        last_error = intent.get("last_payment_error") or {}
        self._lifecycle.apply_event(
            TransitionBookingRequest(
                booking_id, PAYMENT_FAILED,
                actor_id=STRIPE_ACTOR,
                reason=last_error.get("message") or DEFAULT_FAILURE_REASON,
                payment_ref=intent.get("id"),
            ),
            noop_if_status=CANCELLED,
        )

    def checkout_session_completed(self, event: Dict[str, Any]) -> None:
        session = event_object(event)
        booking_id = reservation_id(session)
        if not booking_id:
            logger.warning(f"checkout session {session.get('id')} has no reservationId")
            return
        if session.get("payment_status") != "paid":
            logger.info(
                f"checkout session {session.get('id')} not paid "
                f"(payment_status={session.get('payment_status')})"
            )
            return
        self._lifecycle.apply_event(
            TransitionBookingRequest(
                booking_id, PAYMENT_RECEIVED,
                actor_id=STRIPE_ACTOR,
                payment_ref=session.get("payment_intent") or session.get("id"),
            ),
            noop_if_status=CONFIRMED,
        )


def build_stripe_handlers(lifecycle: BookingLifecycleService) -> WebhookHandlerRegistry:
    handlers = StripePaymentHandlers(lifecycle)
    return WebhookHandlerRegistry({
        PAYMENT_INTENT_SUCCEEDED: handlers.payment_intent_succeeded,
        PAYMENT_INTENT_FAILED: handlers.payment_intent_failed,
        CHECKOUT_SESSION_COMPLETED: handlers.checkout_session_completed,
    })
