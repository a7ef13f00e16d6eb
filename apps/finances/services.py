"""Payment confirmation service."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.bootstrap import build_state_machine
from apps.bookings.domain.errors import BookingNotFound
from apps.bookings.domain.state_machine import ActorType, BookingStatus
from apps.bookings.models import Booking
from apps.bookings.services import BookingStateMachine, TransitionResult
from shared.domain.value_objects import quantize

from .models import Payment, PaymentTransaction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentConfirmation:
    result: TransitionResult
    payment: Payment | None = None
    replayed: bool = False


def confirm_payment(
    booking_reference: str,
    *,
    provider: str,
    transaction_id: str,
    amount: Decimal | None = None,
    method: str = "",
    payload: dict | None = None,
    state_machine: BookingStateMachine | None = None,
) -> PaymentConfirmation:
    """
    Record a provider's payment confirmation and move the booking to PAID.

    A confirmation whose provider and transaction id were already
    recorded is acknowledged without touching the booking again.
    """
    payload = payload or {}
    log = logger.bind(provider=provider, booking=booking_reference, transaction_id=transaction_id)

    with transaction.atomic():
        existing = (
            Payment.objects.select_related("booking")
            .filter(provider=provider, transaction_id=transaction_id)
            .first()
        )
        if existing is not None:
            PaymentTransaction.objects.create(
                payment=existing,
                event="payment.replayed",
                payload=payload,
                status=existing.status,
            )
            log.info("payment.replayed", status=existing.status)
            result = TransitionResult(
                success=existing.status == Payment.Status.SUCCESS,
                old_status=existing.booking.status,
                new_status=existing.booking.status,
            )
            return PaymentConfirmation(result=result, payment=existing, replayed=True)

        booking = Booking.objects.filter(reference=booking_reference).first()
        if booking is None:
            log.warning("payment.unknown_booking")
            return PaymentConfirmation(result=TransitionResult.failure(BookingNotFound(f"Booking {booking_reference} not found")))

        if booking.status == BookingStatus.PAID.value:
            log.warning("payment.duplicate", booking_status=booking.status)

        result = (state_machine or build_state_machine()).transition(
            booking.pk,
            BookingStatus.PAID.value,
            ActorType.SYSTEM.value,
            reason=provider,
            metadata={"provider": provider, "transaction_id": transaction_id},
        )

        payment = Payment.objects.create(
            booking=booking,
            status=Payment.Status.SUCCESS if result.success else Payment.Status.FAILED,
            method=method,
            amount=quantize(amount if amount is not None else booking.total_price),
            currency=booking.currency,
            provider=provider,
            transaction_id=transaction_id,
            metadata={} if result.success else {"failure_reason": result.message, "code": result.code},
            paid_at=timezone.now() if result.success else None,
        )
        PaymentTransaction.objects.create(
            payment=payment,
            event="payment.confirmed",
            payload=payload,
            status=payment.status,
        )

        if result.success:
            Booking.objects.filter(pk=booking.pk).update(payment_method=method or provider)
            log.info("payment.confirmed", old_status=result.old_status, new_status=result.new_status)
        else:
            log.warning("payment.rejected", code=result.code, message=result.message)

    return PaymentConfirmation(result=result, payment=payment)
