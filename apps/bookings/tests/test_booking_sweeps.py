"""Tests for the periodic booking sweeps."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.domain.state_machine import BookingStatus
from apps.bookings.tasks import _sweep, complete_past_bookings, expire_pending_bookings
from apps.users.models import User

pytestmark = pytest.mark.django_db


@pytest.fixture
def guest():
    return User.objects.create_user(email="guest@example.com", password="GuestPass123")


def make_booking(guest, **overrides) -> Booking:
    values = {
        "reference": Booking.generate_reference(),
        "guest": guest,
        "bookable_type": Booking.BookableType.VESSEL,
        "bookable_id": 1,
        "booking_date": timezone.localdate() + timedelta(days=5),
        "total_price": Decimal("8000.00"),
        "cashback_earned": Decimal("400.00"),
    }
    values.update(overrides)
    return Booking.objects.create(**values)


def test_expire_cancels_only_stale_pending_bookings(guest, settings) -> None:
    settings.BOOKING_PENDING_TTL_HOURS = 24
    stale = make_booking(guest, cashback_used=Decimal("150.00"))
    fresh = make_booking(guest)
    confirmed = make_booking(guest, status=Booking.Status.CONFIRMED)
    Booking.objects.filter(pk__in=[stale.pk, confirmed.pk]).update(
        created_at=timezone.now() - timedelta(hours=30)
    )

    result = expire_pending_bookings()

    assert result == {"succeeded": 1, "skipped": 0, "failed": 0}
    stale.refresh_from_db()
    fresh.refresh_from_db()
    confirmed.refresh_from_db()
    assert stale.status == Booking.Status.CANCELLED
    assert "24 hours" in stale.cancellation_reason
    assert fresh.status == Booking.Status.PENDING
    assert confirmed.status == Booking.Status.CONFIRMED
    guest.refresh_from_db()
    assert guest.cashback_balance == Decimal("150.00")
    entry = stale.status_history.get()
    assert entry.actor_type == "system"


def test_complete_past_paid_bookings(guest) -> None:
    yesterday = timezone.localdate() - timedelta(days=1)
    past = make_booking(guest, status=Booking.Status.PAID, booking_date=yesterday)
    upcoming = make_booking(guest, status=Booking.Status.PAID)
    unpaid = make_booking(guest, booking_date=yesterday)

    result = complete_past_bookings()

    assert result == {"succeeded": 1, "skipped": 0, "failed": 0}
    past.refresh_from_db()
    assert past.status == Booking.Status.COMPLETED
    assert past.cashback_status == Booking.CashbackStatus.CREDITED
    assert Booking.objects.get(pk=upcoming.pk).status == Booking.Status.PAID
    assert Booking.objects.get(pk=unpaid.pk).status == Booking.Status.PENDING

    guest.refresh_from_db()
    assert guest.cashback_balance == Decimal("400.00")

    # A second run finds nothing left to complete.
    assert complete_past_bookings() == {"succeeded": 0, "skipped": 0, "failed": 0}
    guest.refresh_from_db()
    assert guest.cashback_balance == Decimal("400.00")


def test_booking_paid_after_selection_is_skipped(guest) -> None:
    # The expiry batch picked this booking while it was pending; payment landed first.
    raced = make_booking(guest, status=Booking.Status.PAID)

    result = _sweep([raced.pk], BookingStatus.CANCELLED, "Automatically cancelled", "Expire pending bookings")

    assert result == {"succeeded": 0, "skipped": 1, "failed": 0}
    assert Booking.objects.get(pk=raced.pk).status == Booking.Status.PAID
