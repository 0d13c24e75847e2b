"""
Hotelius HTTP API - Framework-Agnostic Handlers
===============================================
Pure handler functions over contracts and injected dependencies.
Every handler returns an HttpApiResult; none of them raise.
"""

from __future__ import annotations

import hmac
import json
import logging

from core.http_api.contracts import (
    AvailabilityHttpRequest,
    CreateBookingHttpRequest,
    CronHttpRequest,
    HttpApiResult,
    StripeWebhookHttpRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import (
    availability_error_result,
    error_response,
    integration_error_result,
    internal_error_result,
    success_response,
)
from engines.hotel_booking_engine.errors import AvailabilityError
from engines.hotel_booking_engine.reservations import CreateBookingRequest
from engines.hotel_booking_engine.services import AvailabilityQuery
from integration.adapters import IntegrationError, WebhookHandlerError

logger = logging.getLogger("hotelius.http")


def get_availability(
    request: AvailabilityHttpRequest,
    dependencies: HttpApiDependencies,
) -> HttpApiResult:
    try:
        query = AvailabilityQuery.from_params(request.hotel_id, request.params)
        result = dependencies.availability_resolver.check_availability(query)
    except AvailabilityError as exc:
        return availability_error_result(exc)
    except Exception as exc:
        logger.exception(f"availability check failed for hotel {request.hotel_id}")
        return internal_error_result(
            "Internal server error while checking availability",
            exc, debug=dependencies.debug,
        )
    return HttpApiResult(status=200, payload=success_response(result.to_dict()))


def post_create_booking(
    request: CreateBookingHttpRequest,
    dependencies: HttpApiDependencies,
) -> HttpApiResult:
    try:
        params = json.loads(request.body.decode("utf-8"))
    except ValueError:
        params = None
    if not isinstance(params, dict):
        return HttpApiResult(
            status=400,
            payload=error_response(
                code="INVALID_JSON", message="Request body must be a JSON object.",
            ),
        )

    try:
        booking_request = CreateBookingRequest.from_params(request.hotel_id, params)
        booking = dependencies.booking_creation.create_booking(booking_request)
    except AvailabilityError as exc:
        return availability_error_result(exc)
    except Exception as exc:
        logger.exception(f"booking creation failed for hotel {request.hotel_id}")
        return internal_error_result(
            "Internal server error while creating booking",
            exc, debug=dependencies.debug,
        )
    return HttpApiResult(status=201, payload=success_response(booking.to_dict()))


def post_stripe_webhook(
    request: StripeWebhookHttpRequest,
    dependencies: HttpApiDependencies,
) -> HttpApiResult:
    secret = dependencies.stripe_webhook_secret
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        return HttpApiResult(
            status=500,
            payload=error_response(
                code="WEBHOOK_NOT_CONFIGURED",
                message="Webhook configuration error.",
            ),
        )

    try:
        result = dependencies.webhook_processor.process(
            request.body, request.signature, secret,
        )
    except WebhookHandlerError as exc:
        return integration_error_result(
            exc, debug=dependencies.debug,
            details={"event_id": exc.event_id, "event_type": exc.event_type},
        )
    except IntegrationError as exc:
        logger.warning(f"webhook rejected: {exc.code}: {exc}")
        return integration_error_result(exc, debug=dependencies.debug)
    except Exception as exc:
        logger.exception("webhook processing crashed")
        return internal_error_result(
            "Webhook processing failed.", exc, debug=dependencies.debug,
        )
    return HttpApiResult(status=200, payload=success_response(result.to_dict()))


def _cron_authorized(request: CronHttpRequest, dependencies: HttpApiDependencies) -> bool:
    secret = dependencies.cron_secret
    if not secret:
        # Local development runs the sweep without a token.
        return dependencies.debug
    # Header values may carry any code point; compare_digest only takes ASCII str.
    return hmac.compare_digest(
        (request.authorization or "").encode("utf-8", "surrogatepass"),
        f"Bearer {secret}".encode("utf-8", "surrogatepass"),
    )


def post_expire_holds(
    request: CronHttpRequest,
    dependencies: HttpApiDependencies,
) -> HttpApiResult:
    if not _cron_authorized(request, dependencies):
        return HttpApiResult(
            status=401,
            payload=error_response(code="UNAUTHORIZED", message="Unauthorized."),
        )
    try:
        report = dependencies.hold_expiry.expire_stale_holds()
    except Exception as exc:
        logger.exception("hold expiry sweep failed")
        return internal_error_result(
            "Hold expiry sweep failed.", exc, debug=dependencies.debug,
        )
    return HttpApiResult(status=200, payload=success_response(report.to_dict()))
