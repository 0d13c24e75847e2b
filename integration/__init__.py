"""
Hotelius Integration Layer — Public API
=========================================
Controlled gateway for payment-provider communication.

Doctrine: External systems NEVER write directly to booking data.
Inbound events are verified, recorded once, then dispatched to
handlers that go through the booking lifecycle service.

Inbound: signed webhook → verify → record → handler → lifecycle event
"""

from integration.adapters import (
    AuthenticationError,
    IntegrationError,
    PayloadTooLargeError,
    TransientError,
    ValidationError,
    WebhookHandlerError,
    verify_hmac_signature,
    verify_stripe_signature,
)
from integration.inbound import (
    InMemoryWebhookEventStore,
    WebhookEvent,
    WebhookEventProcessor,
    WebhookEventStatus,
    WebhookHandlerRegistry,
    WebhookOutcome,
    WebhookResult,
)

__all__ = [
    # Errors
    "IntegrationError",
    "ValidationError",
    "AuthenticationError",
    "PayloadTooLargeError",
    "TransientError",
    "WebhookHandlerError",
    # Signatures
    "verify_hmac_signature",
    "verify_stripe_signature",
    # Inbound
    "InMemoryWebhookEventStore",
    "WebhookEvent",
    "WebhookEventProcessor",
    "WebhookEventStatus",
    "WebhookHandlerRegistry",
    "WebhookOutcome",
    "WebhookResult",
]
