"""Tests for provider payment confirmations."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.finances.models import Payment, PaymentTransaction
from apps.finances.services import confirm_payment
from apps.users.models import CashbackTransaction, User

SECRET = "test-webhook-secret"


@override_settings(PAYMENT_WEBHOOK_SECRET=SECRET)
class PaymentConfirmTests(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user(email="guest@example.com", password="GuestPass123")
        self.booking = Booking.objects.create(
            reference="PYT-2030-000123",
            guest=self.guest,
            bookable_type=Booking.BookableType.VESSEL,
            bookable_id=1,
            booking_date=timezone.localdate() + timedelta(days=7),
            total_price=Decimal("12000.00"),
            cashback_earned=Decimal("600.00"),
        )
        self.url = reverse("payment-confirm")

    def _payload(self, **overrides) -> dict:
        payload = {
            "booking_reference": self.booking.reference,
            "provider": "omise",
            "transaction_id": "chrg_001",
            "amount": "12000.00",
            "method": "card",
        }
        payload.update(overrides)
        return payload

    def test_confirmation_pays_booking_once(self) -> None:
        first = self.client.post(self.url, self._payload(), format="json", HTTP_X_WEBHOOK_SECRET=SECRET)
        replay = self.client.post(self.url, self._payload(), format="json", HTTP_X_WEBHOOK_SECRET=SECRET)

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(first.data["status"], "paid")
        self.assertFalse(first.data["replayed"])
        self.assertEqual(replay.status_code, status.HTTP_200_OK, replay.data)
        self.assertTrue(replay.data["replayed"])

        self.booking.refresh_from_db()
        self.guest.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PAID)
        self.assertEqual(self.booking.payment_method, "card")
        self.assertEqual(self.guest.cashback_balance, Decimal("600.00"))
        self.assertEqual(CashbackTransaction.objects.filter(booking=self.booking).count(), 1)

        payment = Payment.objects.get()
        self.assertEqual(payment.status, Payment.Status.SUCCESS)
        self.assertEqual(payment.amount, Decimal("12000.00"))
        self.assertIsNotNone(payment.paid_at)
        self.assertEqual(
            sorted(PaymentTransaction.objects.values_list("event", flat=True)),
            ["payment.confirmed", "payment.replayed"],
        )
        entry = self.booking.status_history.get()
        self.assertEqual(entry.actor_type, "system")
        self.assertEqual(entry.reason, "omise")

    def test_wrong_secret_is_forbidden(self) -> None:
        missing = self.client.post(self.url, self._payload(), format="json")
        wrong = self.client.post(self.url, self._payload(), format="json", HTTP_X_WEBHOOK_SECRET="guess")

        self.assertIn(missing.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertIn(wrong.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(Payment.objects.exists())

    def test_unknown_booking(self) -> None:
        response = self.client.post(
            self.url, self._payload(booking_reference="PYT-2030-999999"), format="json", HTTP_X_WEBHOOK_SECRET=SECRET
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "booking_not_found")

    def test_payment_for_cancelled_booking_is_recorded_as_failed(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.CANCELLED)

        confirmation = confirm_payment(self.booking.reference, provider="omise", transaction_id="chrg_002")

        self.assertFalse(confirmation.result.success)
        self.assertEqual(confirmation.result.code, "invalid_transition")
        self.assertEqual(confirmation.payment.status, Payment.Status.FAILED)
        self.assertEqual(confirmation.payment.amount, Decimal("12000.00"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)

    def test_guest_lists_own_payments(self) -> None:
        confirm_payment(self.booking.reference, provider="omise", transaction_id="chrg_003", method="card")
        stranger = User.objects.create_user(email="stranger@example.com", password="StrangerPass123")

        self.client.force_authenticate(self.guest)
        own = self.client.get(reverse("payment-list"))
        self.client.force_authenticate(stranger)
        other = self.client.get(reverse("payment-list"))

        self.assertEqual(len(own.data), 1)
        self.assertEqual(own.data[0]["booking_reference"], self.booking.reference)
        self.assertEqual(other.data, [])
