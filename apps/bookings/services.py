"""Booking state machine: table-driven transitions and their auto-actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.utils import timezone  # type: ignore

from apps.catalog.services import CatalogService
from apps.promotions.models import GiftCardTransaction
from apps.promotions.services import GiftCardService
from apps.users.models import CashbackTransaction
from apps.users.services import CashbackService, LoyaltyService, ReferralService
from shared.application.uow import DjangoUnitOfWork
from shared.infrastructure.locking import lock_queryset_if_possible

from .domain.errors import (
    BookingError,
    BookingNotFound,
    InvalidTransition,
    ReasonRequired,
    Unauthorized,
)
from .domain.events import BookingStatusChanged, NotificationRequested
from .domain.state_machine import ActorType, AutoAction, BookingStatus, TransitionTable
from .models import Booking, BookingStatusHistory, BookingStatusTransition

logger = logging.getLogger(__name__)

_AUDIENCES = {
    AutoAction.NOTIFY_USER: "user",
    AutoAction.NOTIFY_ADMIN: "admin",
    AutoAction.NOTIFY_VENDOR: "vendor",
}


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    old_status: str | None = None
    new_status: str | None = None
    changed: bool = False
    code: str | None = None
    message: str = ""

    @classmethod
    def failure(cls, error: BookingError, old_status: str | None = None) -> "TransitionResult":
        return cls(success=False, old_status=old_status, code=error.code, message=error.message)


class DjangoTransitionRepository:
    """Loads the active transition table from the database."""

    def load(self) -> TransitionTable:
        rows = BookingStatusTransition.objects.filter(is_active=True).values(
            "from_status",
            "to_status",
            "allowed_actors",
            "requires_reason",
            "auto_actions",
        )
        return TransitionTable.from_rows(rows)


class AutoActionExecutor:
    """Runs the financial side effects declared on a transition.

    Every action checks the booking or the ledgers before moving money,
    so running the same action twice for a booking changes nothing the
    second time.
    """

    def __init__(
        self,
        cashback: CashbackService | None = None,
        loyalty: LoyaltyService | None = None,
        referrals: ReferralService | None = None,
        gift_cards: GiftCardService | None = None,
        catalog: CatalogService | None = None,
    ):
        self.cashback = cashback or CashbackService()
        self.loyalty = loyalty or LoyaltyService()
        self.referrals = referrals or ReferralService(self.cashback)
        self.gift_cards = gift_cards or GiftCardService()
        self.catalog = catalog or CatalogService()

        self._handlers = {
            AutoAction.CREDIT_CASHBACK: self.credit_cashback,
            AutoAction.REFUND_CASHBACK: self.refund_cashback,
            AutoAction.DEDUCT_CASHBACK: self.deduct_cashback,
            AutoAction.PROCESS_REFUND: self.process_refund,
            AutoAction.UPDATE_STATS: self.update_stats,
        }

    def execute(self, action: AutoAction, booking: Booking) -> None:
        logger.info(f"Running auto-action {action.value} for booking {booking.reference}")
        self._handlers[action](booking)

    def credit_cashback(self, booking: Booking) -> None:
        if booking.cashback_status != Booking.CashbackStatus.PENDING:
            return

        if booking.cashback_earned > 0:
            self.cashback.credit(
                booking.guest_id,
                booking.cashback_earned,
                kind=CashbackTransaction.Type.EARNED,
                booking=booking,
                description=f"Cashback for booking {booking.reference}",
            )
        self.loyalty.record_booking(booking.guest_id, booking.total_price)
        self.referrals.award_first_booking_bonus(booking)

        booking.cashback_status = Booking.CashbackStatus.CREDITED
        booking.save(update_fields=["cashback_status", "updated_at"])

    def refund_cashback(self, booking: Booking) -> None:
        """Give back the cashback the guest spent on this booking."""
        if booking.cashback_used <= 0:
            return
        already_refunded = CashbackTransaction.objects.filter(
            booking=booking,
            type=CashbackTransaction.Type.REFUND,
        ).exists()
        if already_refunded:
            return

        self.cashback.credit(
            booking.guest_id,
            booking.cashback_used,
            kind=CashbackTransaction.Type.REFUND,
            booking=booking,
            description=f"Cashback returned from booking {booking.reference}",
        )

    def deduct_cashback(self, booking: Booking) -> None:
        """Take back cashback earned on this booking, or cancel it if not yet credited."""
        if booking.cashback_status == Booking.CashbackStatus.CANCELLED:
            return

        if booking.cashback_status == Booking.CashbackStatus.CREDITED and booking.cashback_earned > 0:
            balance = self.cashback.balance(booking.guest_id)
            amount = min(balance, booking.cashback_earned)
            if amount < booking.cashback_earned:
                logger.warning(
                    f"User {booking.guest_id} already spent part of the cashback from {booking.reference}, "
                    f"reversing {amount} of {booking.cashback_earned}"
                )
            if amount > 0:
                self.cashback.debit(
                    booking.guest_id,
                    amount,
                    kind=CashbackTransaction.Type.REVERSAL,
                    booking=booking,
                    description=f"Cashback reversed for booking {booking.reference}",
                )

        booking.cashback_status = Booking.CashbackStatus.CANCELLED
        booking.save(update_fields=["cashback_status", "updated_at"])

    def process_refund(self, booking: Booking) -> None:
        """Return the gift card amount used on this booking to its card."""
        if not booking.gift_card_id or booking.gift_card_amount <= 0:
            return
        already_refunded = GiftCardTransaction.objects.filter(
            booking=booking,
            type=GiftCardTransaction.Type.REFUND,
        ).exists()
        if already_refunded:
            return

        self.gift_cards.refund(
            booking.gift_card_id,
            booking.gift_card_amount,
            booking=booking,
            note=f"Refund for booking {booking.reference}",
        )

    def update_stats(self, booking: Booking) -> None:
        if booking.vendor_id:
            self.catalog.record_vendor_booking(booking.vendor_id, booking.total_price)


class BookingStateMachine:
    """
    Validates and executes booking status changes

    The transition table is read from the database on every call. The
    booking row is locked before its status is checked, so two callers
    racing on the same booking are serialized and the loser sees the
    winner's status.
    """

    def __init__(self, transitions=None, executor: AutoActionExecutor | None = None, uow_factory=None):
        self.transitions = transitions or DjangoTransitionRepository()
        self.executor = executor or AutoActionExecutor()
        self.uow_factory = uow_factory or DjangoUnitOfWork

    def transition(
        self,
        booking_id: int,
        new_status: str,
        actor_type: str,
        actor_id: int | None = None,
        reason: str | None = None,
        metadata: dict | None = None,
    ) -> TransitionResult:
        try:
            target = _parse(BookingStatus, new_status, "status")
            actor = _parse(ActorType, actor_type, "actor")
            with self.uow_factory() as uow:
                return self._transition(uow, booking_id, target, actor, actor_id, (reason or "").strip(), metadata)
        except BookingError as exc:
            logger.warning(
                f"Transition of booking {booking_id} to {new_status} by {actor_type} rejected: {exc.code} {exc.message}"
            )
            return TransitionResult.failure(exc)

    def _transition(
        self,
        uow,
        booking_id: int,
        target: BookingStatus,
        actor: ActorType,
        actor_id: int | None,
        reason: str,
        metadata: dict | None,
    ) -> TransitionResult:
        booking = lock_queryset_if_possible(Booking.objects.filter(pk=booking_id)).first()
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")

        _authorize(booking, actor, actor_id)
        current = BookingStatus(booking.status)

        if target == current:
            if not booking.status_history.exists():
                self._record_history(booking, None, target, actor, actor_id, reason, metadata)
            return TransitionResult(success=True, old_status=current.value, new_status=target.value)

        rule = self.transitions.load().get(current, target)
        if rule is None or not rule.permits(actor):
            raise InvalidTransition(f"Cannot move booking from {current.value} to {target.value} as {actor.value}")
        if rule.requires_reason and not reason:
            raise ReasonRequired(f"A reason is required to move a booking to {target.value}")

        booking.status = target.value
        update_fields = ["status", "updated_at"]
        if target.timestamp_field:
            setattr(booking, target.timestamp_field, timezone.now())
            update_fields.append(target.timestamp_field)
        if target == BookingStatus.CANCELLED:
            booking.cancellation_reason = reason
            update_fields.append("cancellation_reason")
        booking.save(update_fields=update_fields)

        self._record_history(booking, current, target, actor, actor_id, reason, metadata)

        for action in rule.auto_actions:
            if action.is_notification:
                uow.add_event(
                    NotificationRequested(
                        aggregate_id=booking.pk,
                        booking_id=booking.pk,
                        reference=booking.reference,
                        audience=_AUDIENCES[action],
                        event=f"booking_{target.value}",
                        payload=_notification_payload(booking, current, reason),
                    )
                )
            else:
                self.executor.execute(action, booking)

        uow.add_event(
            BookingStatusChanged(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                reference=booking.reference,
                old_status=current.value,
                new_status=target.value,
                actor_type=actor.value,
                actor_id=actor_id,
                reason=reason,
            )
        )
        logger.info(f"Booking {booking.reference}: {current.value} -> {target.value} by {actor.value}:{actor_id}")
        return TransitionResult(success=True, old_status=current.value, new_status=target.value, changed=True)

    def allowed_transitions(self, status: str, actor_type: str) -> list[dict]:
        """Statuses the actor may move a booking in ``status`` to."""
        try:
            current = BookingStatus(status)
            actor = ActorType(actor_type)
        except ValueError:
            return []
        return [
            {
                "to_status": rule.to_status.value,
                "requires_reason": rule.requires_reason,
                "auto_actions": [action.value for action in rule.auto_actions],
            }
            for rule in self.transitions.load().targets_for(current, actor)
        ]

    @staticmethod
    def _record_history(booking, old_status, new_status, actor, actor_id, reason, metadata) -> None:
        BookingStatusHistory.objects.create(
            booking=booking,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            actor_type=actor.value,
            actor_id=actor_id,
            reason=reason,
            metadata=metadata or {},
        )


def _parse(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidTransition(f"Unknown {label} '{value}'") from None


def _authorize(booking: Booking, actor: ActorType, actor_id: int | None) -> None:
    if actor == ActorType.USER and actor_id != booking.guest_id:
        raise Unauthorized("Only the booking owner can change this booking")
    if actor == ActorType.VENDOR and (booking.vendor_id is None or actor_id != booking.vendor_id):
        raise Unauthorized("Vendor does not own this booking")


def _notification_payload(booking: Booking, old_status: BookingStatus, reason: str) -> dict:
    return {
        "reference": booking.reference,
        "guest_id": booking.guest_id,
        "vendor_id": booking.vendor_id,
        "old_status": old_status.value,
        "new_status": booking.status,
        "booking_date": booking.booking_date.isoformat(),
        "total_price": str(booking.total_price),
        "currency": booking.currency,
        "reason": reason,
    }
