"""Cashback wallet, loyalty tier and referral services."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import F  # type: ignore

from apps.bookings.domain.errors import InsufficientCashback
from shared.domain.value_objects import quantize
from shared.infrastructure.locking import lock_queryset_if_possible

from .models import CashbackTransaction, CustomUser, LoyaltyTier

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)

DEFAULT_TIER_SLUG = "bronze"


class CashbackService:
    """Moves money in and out of a user's cashback balance.

    The user row is locked for the duration of the movement and every
    change is recorded as a ``CashbackTransaction`` with the resulting
    balance.
    """

    @transaction.atomic
    def credit(
        self,
        user_id: int,
        amount: Decimal,
        *,
        kind: str = CashbackTransaction.Type.EARNED,
        booking: "Booking | None" = None,
        referred_user: CustomUser | None = None,
        description: str = "",
    ) -> CashbackTransaction:
        amount = quantize(amount)
        if amount <= 0:
            raise ValueError("Cashback credit must be positive")

        user = self._locked_user(user_id)
        user.cashback_balance = quantize(user.cashback_balance + amount)
        user.save(update_fields=["cashback_balance", "updated_at"])

        entry = CashbackTransaction.objects.create(
            user=user,
            booking=booking,
            referred_user=referred_user,
            type=kind,
            amount=amount,
            balance_after=user.cashback_balance,
            description=description,
        )
        logger.info(f"Credited {amount} cashback ({kind}) to user {user_id}, balance {user.cashback_balance}")
        return entry

    @transaction.atomic
    def debit(
        self,
        user_id: int,
        amount: Decimal,
        *,
        kind: str = CashbackTransaction.Type.USED,
        booking: "Booking | None" = None,
        description: str = "",
    ) -> CashbackTransaction:
        amount = quantize(amount)
        if amount <= 0:
            raise ValueError("Cashback debit must be positive")

        user = self._locked_user(user_id)
        if user.cashback_balance < amount:
            raise InsufficientCashback(
                f"Cashback balance {user.cashback_balance} is lower than {amount}"
            )

        user.cashback_balance = quantize(user.cashback_balance - amount)
        user.save(update_fields=["cashback_balance", "updated_at"])

        entry = CashbackTransaction.objects.create(
            user=user,
            booking=booking,
            type=kind,
            amount=-amount,
            balance_after=user.cashback_balance,
            description=description,
        )
        logger.info(f"Debited {amount} cashback ({kind}) from user {user_id}, balance {user.cashback_balance}")
        return entry

    def balance(self, user_id: int) -> Decimal:
        return CustomUser.objects.values_list("cashback_balance", flat=True).get(pk=user_id)

    @staticmethod
    def _locked_user(user_id: int) -> CustomUser:
        return lock_queryset_if_possible(CustomUser.objects.filter(pk=user_id)).get()


class LoyaltyService:
    """Resolves tiers and moves customers up as they book."""

    def tier_for(self, user: CustomUser) -> LoyaltyTier | None:
        """Return the user's tier, falling back to the default tier."""
        if user.loyalty_tier_id and user.loyalty_tier.is_active:
            return user.loyalty_tier
        return LoyaltyTier.objects.filter(slug=DEFAULT_TIER_SLUG, is_active=True).first()

    def cashback_percent(self, tier: LoyaltyTier | None) -> Decimal:
        if tier is not None and tier.cashback_percent:
            return Decimal(tier.cashback_percent)
        return Decimal(settings.DEFAULT_CASHBACK_PERCENT)

    def extra_discount_percent(self, tier: LoyaltyTier | None) -> Decimal:
        if tier is None:
            return Decimal("0")
        return Decimal(tier.extra_discount_percent)

    @transaction.atomic
    def record_booking(self, user_id: int, amount: Decimal) -> LoyaltyTier | None:
        """Count a paid booking towards the user's lifetime stats and re-rank them."""
        CustomUser.objects.filter(pk=user_id).update(
            total_bookings=F("total_bookings") + 1,
            total_spent=F("total_spent") + quantize(amount),
        )
        return self.update_tier(user_id)

    def update_tier(self, user_id: int) -> LoyaltyTier | None:
        user = CustomUser.objects.get(pk=user_id)
        tier = (
            LoyaltyTier.objects.filter(
                is_active=True,
                min_bookings__lte=user.total_bookings,
                min_spent__lte=user.total_spent,
            )
            .order_by("-sort_order")
            .first()
        )
        if tier is not None and tier.pk != user.loyalty_tier_id:
            user.loyalty_tier = tier
            user.save(update_fields=["loyalty_tier", "updated_at"])
            logger.info(f"User {user_id} moved to loyalty tier {tier.slug}")
        return tier

    def progress(self, user: CustomUser) -> dict:
        """Describe the current tier and how far the user is from the next one."""
        current = self.tier_for(user)
        next_tier = (
            LoyaltyTier.objects.filter(is_active=True)
            .filter(sort_order__gt=current.sort_order if current else -1)
            .order_by("sort_order")
            .first()
        )

        data = {
            "current_tier": current,
            "total_bookings": user.total_bookings,
            "total_spent": user.total_spent,
            "next_tier": next_tier,
            "bookings_progress": None,
            "spent_progress": None,
        }
        if next_tier is not None:
            data["bookings_progress"] = _progress(user.total_bookings, next_tier.min_bookings)
            data["spent_progress"] = _progress(user.total_spent, next_tier.min_spent)
        return data


def _progress(current, required) -> Decimal:
    if not required:
        return Decimal("100.0")
    share = Decimal(current) / Decimal(required) * 100
    return min(Decimal("100.0"), share.quantize(Decimal("0.1")))


class ReferralService:
    """Pays the referrer once, on the referred customer's first credited booking."""

    def __init__(self, cashback: CashbackService | None = None):
        self.cashback = cashback or CashbackService()

    def award_first_booking_bonus(self, booking: "Booking") -> CashbackTransaction | None:
        from apps.bookings.models import Booking  # Local import to prevent circular dependency

        guest = booking.guest
        if not guest.referred_by_id:
            return None

        earlier_credit = (
            Booking.objects.filter(guest=guest, cashback_status=Booking.CashbackStatus.CREDITED)
            .exclude(pk=booking.pk)
            .exists()
        )
        if earlier_credit:
            return None

        already_paid = CashbackTransaction.objects.filter(
            type=CashbackTransaction.Type.REFERRAL,
            referred_user=guest,
        ).exists()
        if already_paid:
            return None

        bonus = Decimal(settings.REFERRAL_BONUS_THB)
        logger.info(f"Referral bonus {bonus} for user {guest.referred_by_id} (booking {booking.reference})")
        return self.cashback.credit(
            guest.referred_by_id,
            bonus,
            kind=CashbackTransaction.Type.REFERRAL,
            booking=booking,
            referred_user=guest,
            description=f"Referral bonus for {guest.email}'s first booking",
        )
