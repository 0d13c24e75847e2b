"""
Hotelius Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("hotels/<str:hotel_id>/availability", views.hotel_availability_view),
    path("hotels/<str:hotel_id>/bookings", views.create_booking_view),
    path("webhooks/stripe", views.stripe_webhook_view),
    path("cron/expire-holds", views.expire_holds_view),
]
