import django.db.models.deletion
from django.db import migrations, models


BOOKING_STATUS_CHOICES = [
    ("pending", "Pending Payment"),
    ("confirmed", "Confirmed"),
    ("checked_in", "Checked In"),
    ("checked_out", "Checked Out"),
    ("cancelled", "Cancelled"),
    ("no_show", "No Show"),
    ("expired", "Expired"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BookingRecord",
            fields=[
                (
                    "id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("hotel_id", models.CharField(db_index=True, max_length=64)),
                ("room_type_id", models.CharField(max_length=64)),
                ("room_id", models.CharField(blank=True, max_length=64, null=True)),
                ("guest_id", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=BOOKING_STATUS_CHOICES,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                ("num_adults", models.PositiveIntegerField(default=1)),
                ("num_children", models.PositiveIntegerField(default=0)),
                ("total_price_cents", models.BigIntegerField()),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "payment_intent_ref",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("checked_out_at", models.DateTimeField(blank=True, null=True)),
                ("soft_hold_expires_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "hotelius_bookings",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["status", "soft_hold_expires_at"],
                        name="idx_booking_status_hold",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingStateLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "from_state",
                    models.CharField(choices=BOOKING_STATUS_CHOICES, max_length=20),
                ),
                (
                    "to_state",
                    models.CharField(choices=BOOKING_STATUS_CHOICES, max_length=20),
                ),
                ("event", models.CharField(max_length=32)),
                ("actor_id", models.CharField(blank=True, max_length=255, null=True)),
                ("reason", models.TextField(blank=True, null=True)),
                ("changed_at", models.DateTimeField()),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="state_log",
                        to="core_booking_store.bookingrecord",
                    ),
                ),
            ],
            options={
                "db_table": "hotelius_booking_state_log",
                "ordering": ["changed_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="WebhookEventRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "external_id",
                    models.CharField(db_index=True, max_length=255, unique=True),
                ),
                ("event_type", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("payload", models.JSONField(default=dict)),
                ("note", models.CharField(blank=True, max_length=64, null=True)),
                ("last_error", models.TextField(blank=True, null=True)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("received_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "hotelius_webhook_events",
                "ordering": ["received_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["status", "updated_at"],
                        name="idx_webhook_status_updated",
                    )
                ],
            },
        ),
    ]
