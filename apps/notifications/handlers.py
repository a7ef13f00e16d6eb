"""Message bus handlers queueing notification tasks for booking events."""

from __future__ import annotations

from apps.bookings.domain.events import BookingCreated, NotificationRequested

from .tasks import dispatch_booking_notification, notify_booking_created


def on_notification_requested(event: NotificationRequested) -> None:
    payload = dict(event.payload, booking_id=event.booking_id)
    dispatch_booking_notification.delay(event.event, payload, event.audience)


def on_booking_created(event: BookingCreated) -> None:
    notify_booking_created.delay(event.booking_id)


def register_handlers(bus) -> None:
    bus.subscribe(NotificationRequested, on_notification_requested)
    bus.subscribe(BookingCreated, on_booking_created)
