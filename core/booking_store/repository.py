"""
Hotelius Booking Store - ORM-backed Stores
==========================================
Django implementations of BookingStore, CatalogStore and
WebhookEventStore.

Concurrency rests on the database:
- booking status changes are `UPDATE ... WHERE id = ? AND status = ?`,
  committed together with their state log row
- a new hold locks the room type's rooms before picking one
- webhook receipt is an INSERT on a unique external_id
- webhook claim is a conditional UPDATE on status
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from django.db import IntegrityError, transaction
from django.db.models import F, Q

from core.booking_store.models import (
    BookingRecord,
    BookingStateLog,
    BookingStatus,
    ClosedDateRecord,
    HotelRecord,
    RatePlanRecord,
    RoomRecord,
    RoomTypeRecord,
    WebhookEventRecord,
    WebhookStatus,
)
from engines.hotel_booking_engine.closed_dates import ClosedDateRange
from engines.hotel_booking_engine.inventory import Room
from engines.hotel_booking_engine.rate_plans import RatePlan
from engines.hotel_booking_engine.services import Hotel, RoomType
from engines.hotel_reservation.booking import Booking, BookingStateChange
from engines.hotel_reservation.occupancy import BLOCKING_STATUSES, pick_free_room
from integration.inbound import DEFAULT_PROCESSING_LEASE_SECONDS, WebhookEvent, WebhookEventStatus

BOOKING_FIELDS = (
    "id", "hotel_id", "room_type_id", "room_id", "guest_id", "status",
    "check_in", "check_out", "num_adults", "num_children",
    "total_price_cents", "currency", "payment_intent_ref",
    "created_at", "updated_at", "cancelled_at", "cancellation_reason",
    "checked_in_at", "checked_out_at", "soft_hold_expires_at",
)


def booking_from_record(record: BookingRecord) -> Booking:
    return Booking(**{name: getattr(record, name) for name in BOOKING_FIELDS})


def webhook_event_from_record(record: WebhookEventRecord) -> WebhookEvent:
    return WebhookEvent(
        external_id=record.external_id,
        event_type=record.event_type,
        status=WebhookEventStatus(record.status),
        received_at=record.received_at,
        updated_at=record.updated_at,
        payload=dict(record.payload or {}),
        processed_at=record.processed_at,
        last_error=record.last_error,
        note=record.note,
        attempts=record.attempts,
    )


class DjangoBookingStore:
    def save_booking(self, booking: Booking) -> None:
        """Insert a new booking. Existing ids are rejected."""
        try:
            with transaction.atomic():
                BookingRecord.objects.create(
                    **{name: getattr(booking, name) for name in BOOKING_FIELDS}
                )
        except IntegrityError as exc:
            raise ValueError(f"Booking {booking.id} already exists.") from exc

    def load_booking(self, booking_id: str) -> Optional[Booking]:
        record = BookingRecord.objects.filter(id=booking_id).first()
        return None if record is None else booking_from_record(record)

    def compare_and_swap_status(
        self,
        booking_id: str,
        expected_status: str,
        new_status: str,
        changes: dict,
        state_change: Optional[BookingStateChange] = None,
    ) -> Optional[Booking]:
        with transaction.atomic():
            updated = BookingRecord.objects.filter(
                id=booking_id, status=expected_status,
            ).update(status=new_status, **changes)
            if updated == 0:
                return None
            if state_change is not None:
                self._write_state_change(state_change)
        return self.load_booking(booking_id)

    def _write_state_change(self, change: BookingStateChange) -> None:
        BookingStateLog.objects.create(
            booking_id=change.booking_id,
            from_state=change.from_state,
            to_state=change.to_state,
            event=change.event,
            actor_id=change.actor_id,
            reason=change.reason,
            changed_at=change.changed_at,
        )

    def list_state_changes(self, booking_id: str) -> List[BookingStateChange]:
        return [
            BookingStateChange(
                booking_id=row.booking_id,
                from_state=row.from_state,
                to_state=row.to_state,
                event=row.event,
                changed_at=row.changed_at,
                actor_id=row.actor_id,
                reason=row.reason,
            )
            for row in BookingStateLog.objects.filter(booking_id=booking_id)
        ]

    def list_expired_holds(self, now: datetime) -> List[Booking]:
        records = BookingRecord.objects.filter(
            status=BookingStatus.PENDING,
            soft_hold_expires_at__isnull=False,
            soft_hold_expires_at__lt=now,
        ).order_by("id")
        return [booking_from_record(r) for r in records]

    def list_blocking_bookings(
        self, hotel_id: str, room_type_id: str, check_in: date, check_out: date,
        now: datetime,
    ) -> List[Booking]:
        records = BookingRecord.objects.filter(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            status__in=sorted(BLOCKING_STATUSES),
            check_in__lt=check_out,
            check_out__gt=check_in,
        ).exclude(
            status=BookingStatus.PENDING,
            soft_hold_expires_at__isnull=False,
            soft_hold_expires_at__lte=now,
        ).order_by("id")
        return [booking_from_record(r) for r in records]

    def insert_held_booking(
        self,
        booking: Booking,
        room_ids: Sequence[str],
        state_change: BookingStateChange,
        now: datetime,
    ) -> Optional[Booking]:
        with transaction.atomic():
            # Row locks serialize concurrent holds on the same room type.
            list(RoomRecord.objects.select_for_update().filter(id__in=list(room_ids)))
            room_id = pick_free_room(room_ids, self.list_blocking_bookings(
                booking.hotel_id, booking.room_type_id,
                booking.check_in, booking.check_out, now,
            ))
            if room_id is None:
                return None
            held = booking.with_changes(room_id=room_id)
            self.save_booking(held)
            self._write_state_change(state_change)
        return held


class DjangoWebhookEventStore:
    def record_received(
        self, external_id: str, event_type: str, payload: dict, now: datetime
    ) -> bool:
        try:
            with transaction.atomic():
                WebhookEventRecord.objects.create(
                    external_id=external_id,
                    event_type=event_type,
                    status=WebhookStatus.RECEIVED,
                    payload=payload,
                    received_at=now,
                    updated_at=now,
                )
        except IntegrityError:
            return False
        return True

    def is_processed(self, external_id: str) -> bool:
        return WebhookEventRecord.objects.filter(
            external_id=external_id, status=WebhookStatus.PROCESSED,
        ).exists()

    def claim(
        self,
        external_id: str,
        now: datetime,
        lease_seconds: int = DEFAULT_PROCESSING_LEASE_SECONDS,
    ) -> bool:
        stale_before = now - timedelta(seconds=lease_seconds)
        claimable = (
            Q(status__in=[WebhookStatus.RECEIVED, WebhookStatus.FAILED])
            | Q(status=WebhookStatus.PROCESSING, updated_at__lte=stale_before)
        )
        updated = WebhookEventRecord.objects.filter(
            claimable, external_id=external_id,
        ).update(
            status=WebhookStatus.PROCESSING,
            updated_at=now,
            attempts=F("attempts") + 1,
        )
        return updated == 1

    def mark_processed(
        self, external_id: str, now: datetime, note: Optional[str] = None
    ) -> None:
        WebhookEventRecord.objects.filter(external_id=external_id).update(
            status=WebhookStatus.PROCESSED,
            processed_at=now,
            updated_at=now,
            note=note,
            last_error=None,
        )

    def mark_failed(self, external_id: str, now: datetime, error: str) -> None:
        WebhookEventRecord.objects.filter(external_id=external_id).update(
            status=WebhookStatus.FAILED,
            updated_at=now,
            last_error=error,
        )

    def get(self, external_id: str) -> Optional[WebhookEvent]:
        record = WebhookEventRecord.objects.filter(external_id=external_id).first()
        return None if record is None else webhook_event_from_record(record)


def room_type_from_record(record: RoomTypeRecord) -> RoomType:
    return RoomType(
        id=record.id,
        hotel_id=record.hotel_id,
        name=record.name,
        base_price_cents=record.base_price_cents,
        currency=record.currency,
        max_adults=record.max_adults,
        max_children=record.max_children,
        max_occupancy=record.max_occupancy,
        is_active=record.is_active,
    )


def rate_plan_from_record(record: RatePlanRecord) -> RatePlan:
    days = record.applicable_days_of_week
    return RatePlan(
        id=record.id,
        hotel_id=record.hotel_id,
        room_type_id=record.room_type_id,
        name=record.name,
        price_per_night_cents=record.price_per_night_cents,
        valid_from=record.valid_from,
        valid_to=record.valid_to,
        priority=record.priority,
        min_stay_nights=record.min_stay_nights,
        max_stay_nights=record.max_stay_nights,
        min_advance_booking_days=record.min_advance_booking_days,
        max_advance_booking_days=record.max_advance_booking_days,
        applicable_days_of_week=frozenset(days) if days is not None else None,
        is_active=record.is_active,
    )


class DjangoCatalogStore:
    """CatalogStore over the catalog tables. Reads only."""

    def fetch_hotel(self, hotel_id: str) -> Optional[Hotel]:
        record = HotelRecord.objects.filter(id=hotel_id).first()
        if record is None:
            return None
        return Hotel(id=record.id, name=record.name, currency=record.currency)

    def list_room_types(self, hotel_id: str) -> List[RoomType]:
        records = RoomTypeRecord.objects.filter(hotel_id=hotel_id).order_by("id")
        return [room_type_from_record(r) for r in records]

    def fetch_room_type_base_price(self, room_type_id: str) -> int:
        price = (
            RoomTypeRecord.objects.filter(id=room_type_id)
            .values_list("base_price_cents", flat=True)
            .first()
        )
        if price is None:
            raise LookupError(f"Unknown room type {room_type_id}.")
        return price

    def fetch_active_rate_plans(self, hotel_id: str, room_type_id: str) -> List[RatePlan]:
        records = RatePlanRecord.objects.filter(
            hotel_id=hotel_id, room_type_id=room_type_id, is_active=True,
        )
        return [rate_plan_from_record(r) for r in records]

    def fetch_closed_date_ranges(
        self, hotel_id: str, room_type_id: Optional[str] = None
    ) -> List[ClosedDateRange]:
        scope = Q(room_type__isnull=True)
        if room_type_id is not None:
            scope |= Q(room_type_id=room_type_id)
        records = ClosedDateRecord.objects.filter(scope, hotel_id=hotel_id, is_active=True)
        return [
            ClosedDateRange(
                hotel_id=r.hotel_id,
                start=r.start_date,
                end=r.end_date,
                room_type_id=r.room_type_id,
                reason=r.reason,
                is_active=r.is_active,
            )
            for r in records
        ]

    def list_rooms(self, hotel_id: str, room_type_id: str) -> List[Room]:
        records = RoomRecord.objects.filter(
            hotel_id=hotel_id, room_type_id=room_type_id, is_available=True,
        ).order_by("room_number", "id")
        return [
            Room(
                id=r.id,
                hotel_id=r.hotel_id,
                room_type_id=r.room_type_id,
                room_number=r.room_number,
                is_available=r.is_available,
            )
            for r in records
        ]
