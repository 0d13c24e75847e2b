from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from django.db import close_old_connections

from core.booking_store.models import (
    BookingRecord,
    BookingStateLog,
    ClosedDateRecord,
    HotelRecord,
    RatePlanRecord,
    RoomRecord,
    RoomTypeRecord,
    WebhookEventRecord,
)
from core.booking_store.repository import (
    DjangoBookingStore,
    DjangoCatalogStore,
    DjangoWebhookEventStore,
)
from core.time.clock import FixedClock
from engines.hotel_booking_engine.errors import AvailabilityError
from engines.hotel_booking_engine.reservations import (
    BookingCreationService,
    CreateBookingRequest,
)
from engines.hotel_booking_engine.services import AvailabilityQuery, AvailabilityResolver
from engines.hotel_reservation.booking import Booking, BookingStateChange
from engines.hotel_reservation.commands import TransitionBookingRequest, cancel_request
from engines.hotel_reservation.errors import InvalidTransitionError
from engines.hotel_reservation.services import BookingLifecycleService, HoldExpiryService
from integration.inbound import WebhookEventStatus

pytestmark = pytest.mark.django_db(transaction=True)

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _booking(booking_id: str = "bk-1", status: str = "pending", **overrides) -> Booking:
    fields = dict(
        id=booking_id,
        hotel_id="hotel-1",
        room_type_id="rt-1",
        guest_id="guest-1",
        check_in=date(2025, 7, 1),
        check_out=date(2025, 7, 4),
        num_adults=2,
        total_price_cents=49500,
        currency="USD",
        created_at=T0 - timedelta(minutes=20),
        updated_at=T0 - timedelta(minutes=20),
        status=status,
    )
    fields.update(overrides)
    return Booking(**fields)


def test_save_and_load_booking_round_trips_fields() -> None:
    store = DjangoBookingStore()
    booking = _booking(soft_hold_expires_at=T0 + timedelta(minutes=10), num_children=1)
    store.save_booking(booking)

    loaded = store.load_booking("bk-1")

    assert loaded == booking
    assert store.load_booking("bk-missing") is None


def test_save_booking_rejects_duplicate_id() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking())

    with pytest.raises(ValueError, match="already exists"):
        store.save_booking(_booking())
    assert BookingRecord.objects.count() == 1


def test_compare_and_swap_applies_only_on_expected_status() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking())

    lost = store.compare_and_swap_status("bk-1", "confirmed", "checked_in", {"updated_at": T0})
    won = store.compare_and_swap_status(
        "bk-1", "pending", "confirmed", {"updated_at": T0, "payment_intent_ref": "pi_1"},
    )

    assert lost is None
    assert won.status == "confirmed"
    assert won.payment_intent_ref == "pi_1"
    assert won.updated_at == T0


def test_lifecycle_service_persists_state_log() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking())
    service = BookingLifecycleService(store=store, clock=FixedClock(T0))

    service.apply_event(TransitionBookingRequest(
        "bk-1", "PAYMENT_RECEIVED", actor_id="system.stripe", payment_ref="pi_1",
    ))
    service.apply_event(cancel_request("bk-1", "Guest changed plans", actor_id="guest-1"))

    record = BookingRecord.objects.get(id="bk-1")
    assert record.status == "cancelled"
    assert record.cancellation_reason == "Guest changed plans"
    assert record.cancelled_at == T0
    log = store.list_state_changes("bk-1")
    assert [(c.from_state, c.to_state) for c in log] == [
        ("pending", "confirmed"), ("confirmed", "cancelled"),
    ]
    assert log[1].actor_id == "guest-1"
    assert BookingStateLog.objects.filter(booking_id="bk-1").count() == 2


def test_state_log_failure_rolls_back_status_change() -> None:
    class _BrokenLogStore(DjangoBookingStore):
        def _write_state_change(self, change):
            raise RuntimeError("state log unavailable")

    store = _BrokenLogStore()
    store.save_booking(_booking())
    service = BookingLifecycleService(store=store, clock=FixedClock(T0))

    with pytest.raises(RuntimeError, match="state log unavailable"):
        service.apply_event(TransitionBookingRequest(
            "bk-1", "PAYMENT_RECEIVED", payment_ref="pi_1",
        ))

    record = BookingRecord.objects.get(id="bk-1")
    assert record.status == "pending"
    assert record.payment_intent_ref is None
    assert BookingStateLog.objects.count() == 0


def test_invalid_transition_leaves_row_untouched() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking(status="checked_out"))
    service = BookingLifecycleService(store=store, clock=FixedClock(T0))

    with pytest.raises(InvalidTransitionError):
        service.apply_event(cancel_request("bk-1", "too late"))

    assert BookingRecord.objects.get(id="bk-1").status == "checked_out"
    assert store.list_state_changes("bk-1") == []


def test_hold_expiry_sweeps_only_lapsed_pending_holds() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking("bk-lapsed", soft_hold_expires_at=T0 - timedelta(minutes=1)))
    store.save_booking(_booking("bk-live", soft_hold_expires_at=T0 + timedelta(minutes=5)))
    store.save_booking(_booking("bk-no-hold"))
    store.save_booking(_booking(
        "bk-paid", status="confirmed", soft_hold_expires_at=T0 - timedelta(minutes=5),
    ))
    clock = FixedClock(T0)
    lifecycle = BookingLifecycleService(store=store, clock=clock)

    report = HoldExpiryService(store=store, lifecycle=lifecycle, clock=clock).expire_stale_holds()

    assert report.expired == ["bk-lapsed"]
    assert report.errors == []
    assert BookingRecord.objects.get(id="bk-lapsed").status == "expired"
    assert BookingRecord.objects.get(id="bk-live").status == "pending"
    assert BookingRecord.objects.get(id="bk-paid").status == "confirmed"


def test_webhook_record_received_is_insert_once() -> None:
    store = DjangoWebhookEventStore()

    assert store.record_received("evt_1", "payment_intent.succeeded", {"id": "evt_1"}, T0)
    assert not store.record_received("evt_1", "payment_intent.succeeded", {"id": "evt_1"}, T0)
    assert WebhookEventRecord.objects.count() == 1
    assert store.get("evt_1").payload == {"id": "evt_1"}


def test_webhook_claim_is_exclusive_until_lease_lapses() -> None:
    store = DjangoWebhookEventStore()
    store.record_received("evt_1", "payment_intent.succeeded", {}, T0)

    assert store.claim("evt_1", T0, 300) is True
    assert store.claim("evt_1", T0 + timedelta(seconds=60), 300) is False
    assert store.claim("evt_1", T0 + timedelta(seconds=301), 300) is True
    assert store.get("evt_1").attempts == 2


def test_webhook_failed_then_processed() -> None:
    store = DjangoWebhookEventStore()
    store.record_received("evt_1", "payment_intent.succeeded", {}, T0)
    store.claim("evt_1", T0, 300)
    store.mark_failed("evt_1", T0, "boom")

    failed = store.get("evt_1")
    assert failed.status == WebhookEventStatus.FAILED
    assert failed.last_error == "boom"
    assert not store.is_processed("evt_1")

    assert store.claim("evt_1", T0 + timedelta(seconds=5), 300) is True
    store.mark_processed("evt_1", T0 + timedelta(seconds=6))

    processed = store.get("evt_1")
    assert processed.status == WebhookEventStatus.PROCESSED
    assert processed.last_error is None
    assert store.is_processed("evt_1")
    assert store.claim("evt_1", T0 + timedelta(hours=1), 300) is False


# ══════════════════════════════════════════════════════════════
# CATALOG + INVENTORY
# ══════════════════════════════════════════════════════════════


def _seed_catalog() -> None:
    hotel = HotelRecord.objects.create(id="hotel-1", name="Harbour View")
    double = RoomTypeRecord.objects.create(
        id="rt-1", hotel=hotel, name="Double", base_price_cents=15000,
        max_adults=2, max_children=1, max_occupancy=3,
    )
    suite = RoomTypeRecord.objects.create(
        id="rt-2", hotel=hotel, name="Suite", base_price_cents=30000,
    )
    RoomRecord.objects.create(id="room-101", hotel=hotel, room_type=double, room_number="101")
    RoomRecord.objects.create(id="room-102", hotel=hotel, room_type=double, room_number="102")
    RoomRecord.objects.create(
        id="room-103", hotel=hotel, room_type=double, room_number="103", is_available=False,
    )
    RoomRecord.objects.create(id="room-201", hotel=hotel, room_type=suite, room_number="201")
    RatePlanRecord.objects.create(
        id="plan-std", hotel=hotel, room_type=double, name="Standard",
        price_per_night_cents=12000, valid_from=date(2025, 1, 1), valid_to=date(2026, 1, 1),
        priority=10, applicable_days_of_week=[0, 1, 2, 3, 4, 5, 6],
    )
    RatePlanRecord.objects.create(
        id="plan-old", hotel=hotel, room_type=double, name="Retired",
        price_per_night_cents=9000, valid_from=date(2025, 1, 1), valid_to=date(2026, 1, 1),
        is_active=False,
    )
    ClosedDateRecord.objects.create(
        hotel=hotel, room_type=suite, start_date=date(2025, 7, 2), end_date=date(2025, 7, 3),
        reason="Refurbishment",
    )
    ClosedDateRecord.objects.create(
        hotel=hotel, start_date=date(2025, 12, 24), end_date=date(2025, 12, 27),
        is_active=False,
    )


def _resolver(store: DjangoBookingStore) -> AvailabilityResolver:
    return AvailabilityResolver(
        catalog=DjangoCatalogStore(), occupancy=store, clock=FixedClock(T0),
        release_connections=close_old_connections,
    )


def test_catalog_store_reads_catalog_tables() -> None:
    _seed_catalog()
    catalog = DjangoCatalogStore()

    assert catalog.fetch_hotel("hotel-1").name == "Harbour View"
    assert catalog.fetch_hotel("hotel-missing") is None
    assert [rt.id for rt in catalog.list_room_types("hotel-1")] == ["rt-1", "rt-2"]
    assert catalog.fetch_room_type_base_price("rt-2") == 30000
    with pytest.raises(LookupError):
        catalog.fetch_room_type_base_price("rt-missing")

    [plan] = catalog.fetch_active_rate_plans("hotel-1", "rt-1")
    assert plan.id == "plan-std"
    assert plan.applicable_days_of_week == frozenset(range(7))

    assert catalog.fetch_closed_date_ranges("hotel-1", "rt-1") == []
    [closed] = catalog.fetch_closed_date_ranges("hotel-1", "rt-2")
    assert (closed.start, closed.end, closed.reason) == (
        date(2025, 7, 2), date(2025, 7, 3), "Refurbishment",
    )
    assert [r.id for r in catalog.list_rooms("hotel-1", "rt-1")] == ["room-101", "room-102"]


def test_availability_resolved_from_orm_catalog() -> None:
    _seed_catalog()
    store = DjangoBookingStore()
    store.save_booking(_booking(status="confirmed", room_id="room-101"))

    result = _resolver(store).check_availability(AvailabilityQuery(
        hotel_id="hotel-1", check_in=date(2025, 7, 1), check_out=date(2025, 7, 4),
    ))

    [double] = result.available_room_types
    assert double.room_type_id == "rt-1"
    assert double.inventory.to_dict() == {
        "total_rooms": 2, "booked_rooms": 1, "available_rooms": 1,
    }
    assert double.pricing["applied_rate_plan_id"] == "plan-std"
    assert double.pricing["total_cents"] == 39600
    [suite] = result.unavailable_room_types
    assert suite.unavailable_reason == "closed_dates"


def test_blocking_bookings_ignore_lapsed_holds_and_finished_stays() -> None:
    store = DjangoBookingStore()
    store.save_booking(_booking("bk-confirmed", status="confirmed"))
    store.save_booking(_booking("bk-held", soft_hold_expires_at=T0 + timedelta(minutes=5)))
    store.save_booking(_booking("bk-lapsed", soft_hold_expires_at=T0 - timedelta(minutes=5)))
    store.save_booking(_booking("bk-cancelled", status="cancelled"))
    store.save_booking(_booking(
        "bk-next", status="confirmed", check_in=date(2025, 7, 4), check_out=date(2025, 7, 6),
    ))

    blocking = store.list_blocking_bookings(
        "hotel-1", "rt-1", date(2025, 7, 1), date(2025, 7, 4), T0,
    )

    assert [b.id for b in blocking] == ["bk-confirmed", "bk-held"]


def test_booking_creation_holds_each_room_once() -> None:
    _seed_catalog()
    store = DjangoBookingStore()
    ids = iter(["bk-a", "bk-b", "bk-c"])
    service = BookingCreationService(
        resolver=_resolver(store), store=store, clock=FixedClock(T0),
        id_factory=lambda: next(ids),
    )
    request = CreateBookingRequest(
        hotel_id="hotel-1", room_type_id="rt-1", guest_id="guest-1",
        check_in=date(2025, 7, 1), check_out=date(2025, 7, 4), adults=2,
    )

    first = service.create_booking(request)
    second = service.create_booking(request)
    with pytest.raises(AvailabilityError) as exc_info:
        service.create_booking(request)

    assert (first.room_id, second.room_id) == ("room-101", "room-102")
    assert exc_info.value.code.value == "NO_AVAILABILITY"
    record = BookingRecord.objects.get(id="bk-a")
    assert record.status == "pending"
    assert record.total_price_cents == 39600
    assert record.soft_hold_expires_at == T0 + timedelta(minutes=15)
    [created] = store.list_state_changes("bk-a")
    assert (created.from_state, created.to_state, created.event) == (
        "pending", "pending", "CREATED",
    )
    assert BookingRecord.objects.count() == 2


def test_held_booking_not_inserted_when_log_write_fails() -> None:
    class _BrokenLogStore(DjangoBookingStore):
        def _write_state_change(self, change):
            raise RuntimeError("state log unavailable")

    _seed_catalog()
    booking = _booking()
    change = BookingStateChange(
        booking_id="bk-1", from_state="pending", to_state="pending",
        event="CREATED", changed_at=T0,
    )

    with pytest.raises(RuntimeError):
        _BrokenLogStore().insert_held_booking(booking, ["room-101"], change, T0)

    assert BookingRecord.objects.count() == 0
