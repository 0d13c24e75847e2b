"""
Hotelius HTTP API - Error Mapping
=================================
Stable transport error mapping for engine and integration failures.
Internal detail is only exposed when the deployment runs with DEBUG.
"""

from __future__ import annotations

from typing import Any, Optional

from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse, HttpApiResult
from engines.hotel_booking_engine.errors import AvailabilityError
from integration.adapters import IntegrationError

GENERIC_INTEGRATION_MESSAGES = {
    "INVALID_SIGNATURE": "Invalid signature.",
    "INVALID_PAYLOAD": "Invalid webhook payload.",
    "PAYLOAD_TOO_LARGE": "Payload too large.",
    "WEBHOOK_HANDLER_FAILED": "Webhook processing failed.",
}


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(data: Any) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data).to_dict()


def availability_error_result(error: AvailabilityError) -> HttpApiResult:
    return HttpApiResult(
        status=error.http_status,
        payload=error_response(
            code=error.code.value,
            message=error.message,
            details=error.details,
        ),
    )


def integration_error_result(
    error: IntegrationError,
    *,
    debug: bool,
    details: Optional[dict[str, Any]] = None,
) -> HttpApiResult:
    message = (
        str(error) if debug
        else GENERIC_INTEGRATION_MESSAGES.get(error.code, "Webhook rejected.")
    )
    return HttpApiResult(
        status=error.http_status,
        payload=error_response(code=error.code, message=message, details=details),
    )


def internal_error_result(
    message: str, exc: BaseException, *, debug: bool
) -> HttpApiResult:
    details = {"error": f"{exc.__class__.__name__}: {exc}"} if debug else {}
    return HttpApiResult(
        status=500,
        payload=error_response(code="INTERNAL_ERROR", message=message, details=details),
    )
