"""
Hotelius Django Adapter Wiring
==============================
Constructs HttpApiDependencies from Django settings.

This module is adapter-only glue:
- bookings, webhook events and the hotel catalog persist through
  the Django ORM stores
- availability workers release their database connections after
  each room type
- the clock is the system clock
"""

from __future__ import annotations

import threading

from django.conf import settings
from django.db import close_old_connections

from core.booking_store.repository import (
    DjangoBookingStore,
    DjangoCatalogStore,
    DjangoWebhookEventStore,
)
from core.config.rules import PricingRules
from core.http_api.dependencies import HttpApiDependencies
from core.time.clock import SystemClock
from engines.hotel_booking_engine.reservations import BookingCreationService
from engines.hotel_booking_engine.services import AvailabilityResolver
from engines.hotel_reservation.services import BookingLifecycleService, HoldExpiryService
from integration.inbound import (
    DEFAULT_MAX_PAYLOAD_BYTES,
    DEFAULT_SIGNATURE_TOLERANCE_SECONDS,
    WebhookEventProcessor,
)
from integration.inbound.stripe_handlers import build_stripe_handlers

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: HttpApiDependencies | None = None


def _build(clock=None, catalog=None) -> HttpApiDependencies:
    clock = clock or SystemClock()
    booking_store = DjangoBookingStore()
    lifecycle = BookingLifecycleService(store=booking_store, clock=clock)
    resolver = AvailabilityResolver(
        catalog=catalog or DjangoCatalogStore(),
        occupancy=booking_store,
        clock=clock,
        rules=PricingRules.from_settings(settings),
        release_connections=close_old_connections,
    )

    return HttpApiDependencies(
        availability_resolver=resolver,
        booking_creation=BookingCreationService(
            resolver=resolver, store=booking_store, clock=clock,
        ),
        webhook_processor=WebhookEventProcessor(
            store=DjangoWebhookEventStore(),
            handlers=build_stripe_handlers(lifecycle),
            clock=clock,
            max_payload_bytes=getattr(
                settings, "HOTELIUS_WEBHOOK_MAX_PAYLOAD_BYTES", DEFAULT_MAX_PAYLOAD_BYTES),
            signature_tolerance_seconds=getattr(
                settings, "HOTELIUS_WEBHOOK_SIGNATURE_TOLERANCE_SECONDS",
                DEFAULT_SIGNATURE_TOLERANCE_SECONDS),
        ),
        hold_expiry=HoldExpiryService(store=booking_store, lifecycle=lifecycle, clock=clock),
        stripe_webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", None),
        cron_secret=getattr(settings, "HOTELIUS_CRON_SECRET", None),
        debug=bool(settings.DEBUG),
    )


def build_dependencies() -> HttpApiDependencies:
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _build()
        return _DEPENDENCIES


def configure_dependencies(*, clock=None, catalog=None) -> HttpApiDependencies:
    """Rebuild the cached dependencies, e.g. with a FixedClock in tests."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = _build(clock=clock, catalog=catalog)
        return _DEPENDENCIES


def reset_dependencies() -> None:
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
