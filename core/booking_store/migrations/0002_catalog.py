import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("core_booking_store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="HotelRecord",
            fields=[
                (
                    "id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                ("currency", models.CharField(default="USD", max_length=3)),
            ],
            options={
                "db_table": "hotelius_hotels",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="RoomTypeRecord",
            fields=[
                (
                    "id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                ("base_price_cents", models.BigIntegerField()),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("max_adults", models.PositiveIntegerField(default=2)),
                ("max_children", models.PositiveIntegerField(default=0)),
                ("max_occupancy", models.PositiveIntegerField(default=2)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="room_types",
                        to="core_booking_store.hotelrecord",
                    ),
                ),
            ],
            options={
                "db_table": "hotelius_room_types",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="RoomRecord",
            fields=[
                (
                    "id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("room_number", models.CharField(max_length=32)),
                ("is_available", models.BooleanField(default=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rooms",
                        to="core_booking_store.hotelrecord",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rooms",
                        to="core_booking_store.roomtyperecord",
                    ),
                ),
            ],
            options={
                "db_table": "hotelius_rooms",
                "ordering": ["room_number", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "room_number"),
                        name="uniq_room_number_per_hotel",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RatePlanRecord",
            fields=[
                (
                    "id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                ("price_per_night_cents", models.BigIntegerField()),
                ("valid_from", models.DateField()),
                ("valid_to", models.DateField()),
                ("priority", models.IntegerField(default=0)),
                ("min_stay_nights", models.PositiveIntegerField(blank=True, null=True)),
                ("max_stay_nights", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "min_advance_booking_days",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "max_advance_booking_days",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                ("applicable_days_of_week", models.JSONField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rate_plans",
                        to="core_booking_store.hotelrecord",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rate_plans",
                        to="core_booking_store.roomtyperecord",
                    ),
                ),
            ],
            options={
                "db_table": "hotelius_rate_plans",
                "ordering": ["-priority", "id"],
            },
        ),
        migrations.CreateModel(
            name="ClosedDateRecord",
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
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("reason", models.CharField(blank=True, max_length=255, null=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="closed_dates",
                        to="core_booking_store.hotelrecord",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="closed_dates",
                        to="core_booking_store.roomtyperecord",
                    ),
                ),
            ],
            options={
                "db_table": "hotelius_closed_dates",
                "ordering": ["start_date", "id"],
            },
        ),
    ]
