"""Notification services for in-app messages and emails."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.db.models import Q  # type: ignore

from apps.users.models import CustomUser
from shared.domain.value_objects import Money

from .models import Notification

logger = logging.getLogger(__name__)


TITLES = {
    "booking_created": "New booking {reference}",
    "booking_confirmed": "Booking {reference} confirmed",
    "booking_paid": "Payment received for booking {reference}",
    "booking_completed": "Booking {reference} completed",
    "booking_cancelled": "Booking {reference} cancelled",
    "booking_refunded": "Booking {reference} refunded",
    "booking_no_show": "Booking {reference} marked as no-show",
}


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Send a plain-text email.

    Returns:
        bool: True if the email was sent
    """
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


# ============================================================================
# DISPATCHER
# ============================================================================

class NotificationDispatcher(ABC):
    """Fire-and-forget delivery of booking notifications."""

    @abstractmethod
    def notify(self, event: str, payload: dict, *, audience: str) -> int:
        """Deliver ``event`` to ``audience``; return the number of recipients reached."""


class DefaultNotificationDispatcher(NotificationDispatcher):
    """Stores an in-app notification per recipient and emails them."""

    def notify(self, event: str, payload: dict, *, audience: str) -> int:
        recipients = self._recipients(audience, payload)
        if not recipients:
            logger.info(f"No {audience} recipients for {event} ({payload.get('reference')})")
            return 0

        title = TITLES.get(event, event.replace("_", " ").capitalize()).format(
            reference=payload.get("reference", "")
        )
        message = self._message(event, payload)

        for user in recipients:
            Notification.objects.create(
                user=user,
                audience=audience,
                event=event,
                booking_id=payload.get("booking_id"),
                title=title,
                message=message,
                payload=payload,
            )
            if user.email:
                send_email_notification(user.email, title, message)

        logger.info(f"Notified {len(recipients)} {audience} recipient(s) about {event} ({payload.get('reference')})")
        return len(recipients)

    def _recipients(self, audience: str, payload: dict) -> list[CustomUser]:
        if audience == Notification.Audience.USER:
            return list(CustomUser.objects.filter(pk=payload.get("guest_id"), is_active=True))
        if audience == Notification.Audience.ADMIN:
            return list(
                CustomUser.objects.filter(is_active=True).filter(
                    Q(role=CustomUser.RoleChoices.ADMIN) | Q(is_staff=True)
                )
            )
        if audience == Notification.Audience.VENDOR:
            if not payload.get("vendor_id"):
                return []
            return list(CustomUser.objects.filter(vendor_profile__pk=payload["vendor_id"], is_active=True))
        return []

    @staticmethod
    def _message(event: str, payload: dict) -> str:
        lines = [
            f"Booking: {payload.get('reference', '')}",
            f"Date: {payload.get('booking_date', '')}",
            f"Total: {_total(payload)}",
        ]
        if payload.get("old_status"):
            lines.append(f"Status: {payload['old_status']} -> {payload.get('new_status', '')}")
        if payload.get("reason"):
            lines.append(f"Reason: {payload['reason']}")
        return "\n".join(lines)


def _total(payload: dict) -> str:
    if payload.get("total_price") is None:
        return ""
    return str(Money(Decimal(payload["total_price"]), payload.get("currency") or "THB"))


dispatcher: NotificationDispatcher = DefaultNotificationDispatcher()
