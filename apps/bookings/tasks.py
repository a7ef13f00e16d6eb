"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from .bootstrap import build_state_machine
from .domain.errors import InvalidTransition
from .domain.state_machine import ActorType, BookingStatus
from .models import Booking

logger = logging.getLogger(__name__)


def _sweep(booking_ids, target: BookingStatus, reason: str | None, label: str) -> dict[str, int]:
    state_machine = build_state_machine()
    succeeded = 0
    skipped = 0
    failed = 0

    for booking_id in booking_ids:
        try:
            result = state_machine.transition(booking_id, target.value, ActorType.SYSTEM.value, reason=reason)
        except Exception as e:
            logger.error(f"Error moving booking {booking_id} to {target.value}: {e}", exc_info=True)
            failed += 1
            continue

        if result.success and result.changed:
            succeeded += 1
        elif result.code == InvalidTransition.code:
            # Status moved on since the batch was selected
            logger.info(f"Booking {booking_id} skipped: {result.message}")
            skipped += 1
        elif not result.success:
            logger.warning(f"Booking {booking_id} not moved to {target.value}: {result.code} {result.message}")
            failed += 1

    if succeeded or skipped or failed:
        logger.info(f"{label}: {succeeded} succeeded, {skipped} skipped, {failed} failed")

    return {"succeeded": succeeded, "skipped": skipped, "failed": failed}


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Cancel bookings left unpaid in PENDING for too long.

    The age limit is BOOKING_PENDING_TTL_HOURS. Each booking goes through
    the state machine as the system actor, so a booking paid in the
    meantime is skipped by the status re-check.

    Returns:
        dict: {"succeeded": cancelled, "skipped": no longer pending, "failed": rejected or errored}
    """
    hours = settings.BOOKING_PENDING_TTL_HOURS
    cutoff = timezone.now() - timedelta(hours=hours)
    booking_ids = list(
        Booking.objects.filter(status=Booking.Status.PENDING, created_at__lt=cutoff)
        .order_by("created_at")
        .values_list("pk", flat=True)
    )
    return _sweep(
        booking_ids,
        BookingStatus.CANCELLED,
        f"Automatically cancelled: payment not received within {hours} hours",
        "Expire pending bookings",
    )


@shared_task(name="bookings.complete_past_bookings")
def complete_past_bookings() -> dict[str, int]:
    """
    Complete PAID bookings whose booking date has passed.

    Returns:
        dict: {"succeeded": completed, "skipped": no longer paid, "failed": rejected or errored}
    """
    today = timezone.localdate()
    booking_ids = list(
        Booking.objects.filter(status=Booking.Status.PAID, booking_date__lt=today)
        .order_by("booking_date")
        .values_list("pk", flat=True)
    )
    return _sweep(booking_ids, BookingStatus.COMPLETED, None, "Complete past bookings")
