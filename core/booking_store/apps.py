"""
Hotelius Booking Store - App Configuration
==========================================
Persistent bookings, booking state log and webhook idempotency records.
"""

from django.apps import AppConfig


class CoreBookingStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.booking_store"
    label = "core_booking_store"
    verbose_name = "Hotelius Booking Store"
