"""Celery tasks delivering booking notifications off the request path."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from . import services

logger = logging.getLogger(__name__)


@shared_task(name="notifications.dispatch_booking_notification")
def dispatch_booking_notification(event: str, payload: dict, audience: str) -> int:
    """Deliver one booking event to one audience; returns recipients reached."""
    return services.dispatcher.notify(event, payload, audience=audience)


@shared_task(name="notifications.notify_booking_created")
def notify_booking_created(booking_id: int) -> int:
    """Tell admins, and the vendor if there is one, about a new booking."""
    from apps.bookings.models import Booking  # Local import to prevent circular dependency

    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        logger.error(f"Booking {booking_id} not found for new booking notification")
        return 0

    payload = {
        "booking_id": booking.pk,
        "reference": booking.reference,
        "guest_id": booking.guest_id,
        "vendor_id": booking.vendor_id,
        "booking_date": booking.booking_date.isoformat(),
        "total_price": str(booking.total_price),
        "currency": booking.currency,
    }
    sent = services.dispatcher.notify("booking_created", payload, audience="admin")
    if booking.vendor_id:
        sent += services.dispatcher.notify("booking_created", payload, audience="vendor")
    return sent
