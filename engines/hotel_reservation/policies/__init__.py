"""
Hotelius Hotel Reservation Engine — Policies
"""
from __future__ import annotations
from typing import Optional

from engines.hotel_reservation.events import (
    requires_payment_reference, requires_reason,
)


def reason_required_policy(event: str, reason: Optional[str]) -> Optional[str]:
    if requires_reason(event) and not (reason and reason.strip()):
        return f"event '{event}' requires a reason."
    return None


def payment_reference_required_policy(
    event: str, payment_ref: Optional[str]
) -> Optional[str]:
    if requires_payment_reference(event) and not (payment_ref and payment_ref.strip()):
        return f"event '{event}' requires a payment reference."
    return None


def transition_data_policies(request) -> Optional[str]:
    """First violated data policy for a TransitionBookingRequest, or None."""
    return (
        reason_required_policy(request.event, request.reason)
        or payment_reference_required_policy(request.event, request.payment_ref)
    )
