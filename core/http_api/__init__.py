"""
Hotelius HTTP API - Public API
==============================
"""

from core.http_api.contracts import (
    AvailabilityHttpRequest,
    CreateBookingHttpRequest,
    CronHttpRequest,
    HttpApiErrorBody,
    HttpApiResponse,
    HttpApiResult,
    StripeWebhookHttpRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import error_response, success_response
from core.http_api.handlers import (
    get_availability,
    post_create_booking,
    post_expire_holds,
    post_stripe_webhook,
)

__all__ = [
    "AvailabilityHttpRequest",
    "CreateBookingHttpRequest",
    "CronHttpRequest",
    "StripeWebhookHttpRequest",
    "HttpApiErrorBody",
    "HttpApiResponse",
    "HttpApiResult",
    "HttpApiDependencies",
    "error_response",
    "success_response",
    "get_availability",
    "post_create_booking",
    "post_expire_holds",
    "post_stripe_webhook",
]
