"""
Hotelius Django Adapter Views
=============================
Pass-through HTTP views over core/http_api handlers.
"""

from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from core.http_api.contracts import (
    AvailabilityHttpRequest,
    CreateBookingHttpRequest,
    CronHttpRequest,
    HttpApiResult,
    StripeWebhookHttpRequest,
)
from core.http_api.errors import error_response
from core.http_api.handlers import (
    get_availability,
    post_create_booking,
    post_expire_holds,
    post_stripe_webhook,
)


def _json_result(result: HttpApiResult) -> JsonResponse:
    return JsonResponse(result.payload, status=result.status)


def _method_not_allowed() -> JsonResponse:
    return JsonResponse(
        error_response(
            code="METHOD_NOT_ALLOWED",
            message="Method not allowed for this endpoint.",
        ),
        status=405,
    )


def hotel_availability_view(request: HttpRequest, hotel_id: str):
    if request.method != "GET":
        return _method_not_allowed()
    contract = AvailabilityHttpRequest(hotel_id=hotel_id, params=request.GET)
    return _json_result(get_availability(contract, build_dependencies()))


@csrf_exempt
def create_booking_view(request: HttpRequest, hotel_id: str):
    if request.method != "POST":
        return _method_not_allowed()
    contract = CreateBookingHttpRequest(hotel_id=hotel_id, body=request.body)
    return _json_result(post_create_booking(contract, build_dependencies()))


@csrf_exempt
def stripe_webhook_view(request: HttpRequest):
    if request.method != "POST":
        return _method_not_allowed()
    contract = StripeWebhookHttpRequest(
        body=request.body,
        signature=request.headers.get("Stripe-Signature"),
    )
    return _json_result(post_stripe_webhook(contract, build_dependencies()))


@csrf_exempt
def expire_holds_view(request: HttpRequest):
    if request.method != "POST":
        return _method_not_allowed()
    contract = CronHttpRequest(authorization=request.headers.get("Authorization"))
    return _json_result(post_expire_holds(contract, build_dependencies()))
