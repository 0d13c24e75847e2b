from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from adapters.django_api import configure_dependencies, reset_dependencies
from core.booking_store.models import (
    BookingRecord,
    ClosedDateRecord,
    HotelRecord,
    RatePlanRecord,
    RoomRecord,
    RoomTypeRecord,
    WebhookEventRecord,
)
from core.booking_store.repository import DjangoBookingStore
from core.time.clock import FixedClock
from engines.hotel_reservation.booking import Booking
from integration.adapters import sign_stripe_payload

pytestmark = pytest.mark.django_db(transaction=True)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
WEBHOOK_SECRET = "whsec_django_tests"
CRON_SECRET = "cron-django-tests"


@pytest.fixture
def catalog() -> None:
    hotel = HotelRecord.objects.create(id="hotel-1", name="Harbour View")
    double = RoomTypeRecord.objects.create(
        id="rt-double", hotel=hotel, name="Double", base_price_cents=15000,
    )
    suite = RoomTypeRecord.objects.create(
        id="rt-suite", hotel=hotel, name="Suite", base_price_cents=30000,
        max_adults=4, max_occupancy=4,
    )
    RoomRecord.objects.create(id="room-101", hotel=hotel, room_type=double, room_number="101")
    RoomRecord.objects.create(id="room-102", hotel=hotel, room_type=double, room_number="102")
    RoomRecord.objects.create(id="room-201", hotel=hotel, room_type=suite, room_number="201")
    RatePlanRecord.objects.create(
        id="plan-summer", hotel=hotel, room_type=double, name="Summer",
        price_per_night_cents=15000, valid_from=date(2025, 6, 1), valid_to=date(2025, 9, 1),
        priority=100,
    )
    ClosedDateRecord.objects.create(
        hotel=hotel, room_type=suite,
        start_date=date(2025, 7, 2), end_date=date(2025, 7, 3), reason="Maintenance",
    )


@pytest.fixture
def api(settings, catalog):
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.HOTELIUS_CRON_SECRET = CRON_SECRET
    settings.DEBUG = False
    configure_dependencies(clock=FixedClock(NOW))
    yield
    reset_dependencies()


def _save_booking(booking_id: str, hold_offset_minutes: int) -> None:
    DjangoBookingStore().save_booking(Booking(
        id=booking_id, hotel_id="hotel-1", room_type_id="rt-double", guest_id="guest-1",
        check_in=date(2025, 7, 1), check_out=date(2025, 7, 4), num_adults=2,
        total_price_cents=49500, currency="USD",
        created_at=NOW - timedelta(minutes=20), updated_at=NOW - timedelta(minutes=20),
        soft_hold_expires_at=NOW + timedelta(minutes=hold_offset_minutes),
    ))


def _post_webhook(client, event: dict, secret: str = WEBHOOK_SECRET):
    body = json.dumps(event).encode("utf-8")
    return client.post(
        "/v1/webhooks/stripe",
        data=body,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=sign_stripe_payload(body, secret, int(NOW.timestamp())),
    )


def test_availability_endpoint_prices_and_reports_closures(client, api) -> None:
    response = client.get(
        "/v1/hotels/hotel-1/availability",
        {"checkIn": "2025-07-01", "checkOut": "2025-07-04", "adults": "2"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["nights"] == 3
    assert data["days_in_advance"] == 30
    [available] = data["availability"]["available_room_types"]
    assert available["room_type_id"] == "rt-double"
    assert available["pricing"]["total_cents"] == 49500
    assert available["pricing"]["applied_rate_plan_id"] == "plan-summer"
    [closed] = data["availability"]["unavailable_room_types"]
    assert closed["unavailable_reason"] == "closed_dates"
    assert closed["closed_dates"] == [
        {"start": "2025-07-02", "end": "2025-07-03", "reason": "Maintenance"},
    ]


def test_availability_endpoint_error_codes(client, api) -> None:
    missing = client.get("/v1/hotels/hotel-1/availability")
    bad_format = client.get(
        "/v1/hotels/hotel-1/availability", {"checkIn": "July 1", "checkOut": "2025-07-04"},
    )
    unknown = client.get(
        "/v1/hotels/nope/availability", {"checkIn": "2025-07-01", "checkOut": "2025-07-04"},
    )

    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "MISSING_PARAMETERS"
    assert bad_format.json()["error"]["code"] == "INVALID_DATE_FORMAT"
    assert unknown.status_code == 404


def test_availability_endpoint_rejects_post(client, api) -> None:
    response = client.post("/v1/hotels/hotel-1/availability")
    assert response.status_code == 405


def test_stripe_webhook_confirms_booking_once(client, api) -> None:
    _save_booking("bk-1", 10)
    event = {
        "id": "evt_1", "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "metadata": {"reservationId": "bk-1"}}},
    }

    first = _post_webhook(client, event)
    second = _post_webhook(client, event)

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "processed"
    assert second.json()["data"]["status"] == "already_processed"
    record = BookingRecord.objects.get(id="bk-1")
    assert record.status == "confirmed"
    assert record.payment_intent_ref == "pi_1"
    assert record.state_log.count() == 1
    assert WebhookEventRecord.objects.get(external_id="evt_1").status == "processed"


def test_stripe_webhook_rejects_bad_signature(client, api) -> None:
    response = _post_webhook(client, {"id": "evt_1", "type": "x"}, secret="whsec_wrong")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"
    assert WebhookEventRecord.objects.count() == 0


def test_stripe_webhook_without_configured_secret(client, settings, catalog) -> None:
    settings.STRIPE_WEBHOOK_SECRET = ""
    configure_dependencies(clock=FixedClock(NOW))
    try:
        response = _post_webhook(client, {"id": "evt_1", "type": "x"})
    finally:
        reset_dependencies()

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "WEBHOOK_NOT_CONFIGURED"


def test_expire_holds_cron_endpoint(client, api) -> None:
    _save_booking("bk-lapsed", -1)
    _save_booking("bk-live", 15)

    unauthorized = client.post("/v1/cron/expire-holds")
    authorized = client.post(
        "/v1/cron/expire-holds", HTTP_AUTHORIZATION=f"Bearer {CRON_SECRET}",
    )

    assert unauthorized.status_code == 401
    assert authorized.status_code == 200
    assert authorized.json()["data"]["expired"] == ["bk-lapsed"]
    assert BookingRecord.objects.get(id="bk-lapsed").status == "expired"
    assert BookingRecord.objects.get(id="bk-live").status == "pending"


def test_cron_endpoint_rejects_non_ascii_token(client, api) -> None:
    response = client.post("/v1/cron/expire-holds", HTTP_AUTHORIZATION="Bearer é")
    assert response.status_code == 401


def test_stripe_webhook_rejects_non_ascii_signature(client, api) -> None:
    response = client.post(
        "/v1/webhooks/stripe",
        data=b"{}",
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=f"t={int(NOW.timestamp())},v1=é",
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


def _post_booking(client, **overrides):
    body = {
        "roomTypeId": "rt-double", "guestId": "guest-1",
        "checkIn": "2025-07-01", "checkOut": "2025-07-04", "adults": 2,
    }
    body.update(overrides)
    return client.post(
        "/v1/hotels/hotel-1/bookings", data=json.dumps(body), content_type="application/json",
    )


def test_booking_endpoint_holds_rooms_until_sold_out(client, api) -> None:
    first = _post_booking(client, expectedTotalCents=49500)
    second = _post_booking(client)
    third = _post_booking(client)

    assert first.status_code == 201
    booking = first.json()["data"]
    assert booking["status"] == "pending"
    assert booking["room_id"] == "room-101"
    assert booking["total_price_cents"] == 49500
    assert booking["soft_hold_expires_at"] == (NOW + timedelta(minutes=15)).isoformat()
    assert second.json()["data"]["room_id"] == "room-102"
    assert third.status_code == 409
    assert third.json()["error"]["code"] == "NO_AVAILABILITY"

    availability = client.get(
        "/v1/hotels/hotel-1/availability",
        {"checkIn": "2025-07-01", "checkOut": "2025-07-04", "adults": "2"},
    ).json()["data"]["availability"]
    double = {r["room_type_id"]: r for r in availability["unavailable_room_types"]}["rt-double"]
    assert double["unavailable_reason"] == "no_rooms_available"
    assert double["booked_rooms"] == 2


def test_booking_endpoint_error_codes(client, api) -> None:
    mismatch = _post_booking(client, expectedTotalCents=40000)
    closed = _post_booking(client, roomTypeId="rt-suite")
    bad_json = client.post(
        "/v1/hotels/hotel-1/bookings", data="not json", content_type="application/json",
    )
    wrong_method = client.get("/v1/hotels/hotel-1/bookings")

    assert mismatch.status_code == 409
    assert mismatch.json()["error"]["code"] == "PRICE_MISMATCH"
    assert closed.json()["error"]["code"] == "ROOM_TYPE_UNAVAILABLE"
    assert closed.json()["error"]["details"]["reason"] == "closed_dates"
    assert bad_json.status_code == 400
    assert bad_json.json()["error"]["code"] == "INVALID_JSON"
    assert wrong_method.status_code == 405
    assert BookingRecord.objects.count() == 0
