"""
Hotelius Booking Store - Persistent Records
===========================================
Bookings are never deleted; status changes only through the
conditional UPDATE in repository.DjangoBookingStore.
Webhook events are unique per provider event id.
Catalog rows (hotels, room types, rooms, rate plans, closures)
are read by repository.DjangoCatalogStore.
"""

from __future__ import annotations

from django.db import models


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending Payment"
    CONFIRMED = "confirmed", "Confirmed"
    CHECKED_IN = "checked_in", "Checked In"
    CHECKED_OUT = "checked_out", "Checked Out"
    CANCELLED = "cancelled", "Cancelled"
    NO_SHOW = "no_show", "No Show"
    EXPIRED = "expired", "Expired"


class WebhookStatus(models.TextChoices):
    RECEIVED = "received", "Received"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


class BookingRecord(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    hotel_id = models.CharField(max_length=64, db_index=True)
    room_type_id = models.CharField(max_length=64)
    room_id = models.CharField(max_length=64, null=True, blank=True)
    guest_id = models.CharField(max_length=64)
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
    )
    check_in = models.DateField()
    check_out = models.DateField()
    num_adults = models.PositiveIntegerField(default=1)
    num_children = models.PositiveIntegerField(default=0)
    total_price_cents = models.BigIntegerField()
    currency = models.CharField(max_length=3, default="USD")
    payment_intent_ref = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)
    soft_hold_expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "hotelius_bookings"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["status", "soft_hold_expires_at"],
                name="idx_booking_status_hold",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class BookingStateLog(models.Model):
    booking = models.ForeignKey(
        BookingRecord,
        on_delete=models.PROTECT,
        related_name="state_log",
    )
    from_state = models.CharField(max_length=20, choices=BookingStatus.choices)
    to_state = models.CharField(max_length=20, choices=BookingStatus.choices)
    event = models.CharField(max_length=32)
    actor_id = models.CharField(max_length=255, null=True, blank=True)
    reason = models.TextField(null=True, blank=True)
    changed_at = models.DateTimeField()

    class Meta:
        db_table = "hotelius_booking_state_log"
        ordering = ["changed_at", "id"]

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.from_state} -> {self.to_state}"


class WebhookEventRecord(models.Model):
    external_id = models.CharField(max_length=255, unique=True, db_index=True)
    event_type = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=WebhookStatus.choices,
        default=WebhookStatus.RECEIVED,
    )
    payload = models.JSONField(default=dict)
    note = models.CharField(max_length=64, null=True, blank=True)
    last_error = models.TextField(null=True, blank=True)
    attempts = models.PositiveIntegerField(default=0)
    received_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "hotelius_webhook_events"
        ordering = ["received_at", "id"]
        indexes = [
            models.Index(fields=["status", "updated_at"], name="idx_webhook_status_updated"),
        ]

    def __str__(self) -> str:
        return f"{self.external_id} ({self.status})"


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════


class HotelRecord(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=255)
    currency = models.CharField(max_length=3, default="USD")

    class Meta:
        db_table = "hotelius_hotels"
        ordering = ["id"]

    def __str__(self) -> str:
        return self.name


class RoomTypeRecord(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    hotel = models.ForeignKey(
        HotelRecord,
        on_delete=models.PROTECT,
        related_name="room_types",
    )
    name = models.CharField(max_length=255)
    base_price_cents = models.BigIntegerField()
    currency = models.CharField(max_length=3, default="USD")
    max_adults = models.PositiveIntegerField(default=2)
    max_children = models.PositiveIntegerField(default=0)
    max_occupancy = models.PositiveIntegerField(default=2)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "hotelius_room_types"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.hotel_id}/{self.name}"


class RoomRecord(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    hotel = models.ForeignKey(
        HotelRecord,
        on_delete=models.PROTECT,
        related_name="rooms",
    )
    room_type = models.ForeignKey(
        RoomTypeRecord,
        on_delete=models.PROTECT,
        related_name="rooms",
    )
    room_number = models.CharField(max_length=32)
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = "hotelius_rooms"
        ordering = ["room_number", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "room_number"], name="uniq_room_number_per_hotel",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.hotel_id}#{self.room_number}"


class RatePlanRecord(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    hotel = models.ForeignKey(
        HotelRecord,
        on_delete=models.PROTECT,
        related_name="rate_plans",
    )
    room_type = models.ForeignKey(
        RoomTypeRecord,
        on_delete=models.PROTECT,
        related_name="rate_plans",
    )
    name = models.CharField(max_length=255)
    price_per_night_cents = models.BigIntegerField()
    valid_from = models.DateField()
    valid_to = models.DateField()
    priority = models.IntegerField(default=0)
    min_stay_nights = models.PositiveIntegerField(null=True, blank=True)
    max_stay_nights = models.PositiveIntegerField(null=True, blank=True)
    min_advance_booking_days = models.PositiveIntegerField(null=True, blank=True)
    max_advance_booking_days = models.PositiveIntegerField(null=True, blank=True)
    # Sunday-based weekdays (0 = Sunday); null applies every day.
    applicable_days_of_week = models.JSONField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "hotelius_rate_plans"
        ordering = ["-priority", "id"]

    def __str__(self) -> str:
        return f"{self.room_type_id}: {self.name}"


class ClosedDateRecord(models.Model):
    hotel = models.ForeignKey(
        HotelRecord,
        on_delete=models.PROTECT,
        related_name="closed_dates",
    )
    # Null closes the whole hotel.
    room_type = models.ForeignKey(
        RoomTypeRecord,
        on_delete=models.PROTECT,
        related_name="closed_dates",
        null=True,
        blank=True,
    )
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255, null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "hotelius_closed_dates"
        ordering = ["start_date", "id"]

    def __str__(self) -> str:
        return f"{self.hotel_id} closed {self.start_date}..{self.end_date}"
