"""
Hotelius HTTP API - Dependencies
================================
Injected services and secrets for handler wiring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from engines.hotel_booking_engine.reservations import BookingCreationService
from engines.hotel_booking_engine.services import AvailabilityResolver
from engines.hotel_reservation.services import HoldExpiryService
from integration.inbound import WebhookEventProcessor


@dataclass(frozen=True)
class HttpApiDependencies:
    availability_resolver: AvailabilityResolver
    booking_creation: BookingCreationService
    webhook_processor: WebhookEventProcessor
    hold_expiry: HoldExpiryService
    stripe_webhook_secret: Optional[str] = None
    cron_secret: Optional[str] = None
    debug: bool = False
