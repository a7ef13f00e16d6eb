"""Promo code and gift card services used during booking creation and refunds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.discounts import PromoTerms
from apps.bookings.domain.errors import (
    GiftCardInvalid,
    GiftCardNotFound,
    PromoCodeInvalid,
    PromoCodeNotFound,
)
from apps.catalog.models import AppliesTo
from apps.catalog.services import TOUR, VESSEL
from shared.domain.value_objects import quantize
from shared.infrastructure.locking import lock_queryset_if_possible

from .models import GiftCard, GiftCardTransaction, PromoCode, PromoCodeUsage

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoQuote:
    promo_code: PromoCode
    terms: PromoTerms
    discount: Decimal


@dataclass(frozen=True)
class GiftCardQuote:
    gift_card: GiftCard
    applicable_amount: Decimal


class PromoCodeService:
    """Validates promo codes and records their use."""

    def validate(
        self,
        code: str,
        *,
        user_id: int,
        bookable_type: str,
        item_id: int,
        order_amount: Decimal,
        now=None,
    ) -> PromoQuote:
        promo = PromoCode.objects.filter(code=(code or "").strip().upper(), is_active=True).first()
        if promo is None:
            raise PromoCodeNotFound(f"Promo code '{code}' does not exist")

        now = now or timezone.now()
        if now < promo.valid_from or now > promo.valid_until:
            raise PromoCodeInvalid("Promo code has expired")

        if promo.max_uses is not None and promo.used_count >= promo.max_uses:
            raise PromoCodeInvalid("Promo code usage limit reached")

        used_by_user = PromoCodeUsage.objects.filter(promo_code=promo, user_id=user_id).count()
        if used_by_user >= promo.per_user_limit:
            raise PromoCodeInvalid("You have already used this promo code")

        if order_amount < promo.min_order_amount:
            raise PromoCodeInvalid(f"Minimum order amount is {promo.min_order_amount} THB")

        if promo.applies_to == AppliesTo.VESSELS and bookable_type != VESSEL:
            raise PromoCodeInvalid("This code only applies to vessel rentals")
        if promo.applies_to == AppliesTo.TOURS and bookable_type != TOUR:
            raise PromoCodeInvalid("This code only applies to tours")

        allowed_ids = promo.vessel_ids if bookable_type == VESSEL else promo.tour_ids
        if allowed_ids and item_id not in [int(pk) for pk in allowed_ids]:
            raise PromoCodeInvalid(f"This code does not apply to this {bookable_type}")

        terms = PromoTerms(
            discount_type=promo.discount_type,
            value=Decimal(promo.value),
            max_discount_amount=promo.max_discount_amount,
        )
        return PromoQuote(promo_code=promo, terms=terms, discount=terms.discount_for(order_amount))

    def record_usage(self, promo: PromoCode, *, user_id: int, booking: "Booking", discount: Decimal) -> PromoCodeUsage:
        usage = PromoCodeUsage.objects.create(
            promo_code=promo,
            user_id=user_id,
            booking=booking,
            discount_applied=quantize(discount),
        )
        PromoCode.objects.filter(pk=promo.pk).update(used_count=F("used_count") + 1)
        logger.info(f"Promo code {promo.code} used on booking {booking.reference}")
        return usage


class GiftCardService:
    """Validates, redeems and refunds gift card balances."""

    def validate(self, code: str, *, order_amount: Decimal, applies_to: str, today=None) -> GiftCardQuote:
        card = GiftCard.objects.filter(code=(code or "").strip().upper()).first()
        if card is None:
            raise GiftCardNotFound(f"Gift card '{code}' does not exist")

        if card.status != GiftCard.Status.ACTIVE:
            raise GiftCardInvalid(f"Gift card is {card.status}")

        today = today or timezone.localdate()
        if today < card.valid_from:
            raise GiftCardInvalid("Gift card is not yet valid")
        if today > card.valid_until:
            raise GiftCardInvalid("Gift card has expired")

        if card.balance <= 0:
            raise GiftCardInvalid("Gift card has no remaining balance")

        if card.applies_to not in (AppliesTo.ALL, applies_to):
            raise GiftCardInvalid(f"Gift card can only be used for {card.applies_to}")

        if order_amount < card.min_order_amount:
            raise GiftCardInvalid(f"Minimum order amount is {card.min_order_amount} THB")

        return GiftCardQuote(gift_card=card, applicable_amount=min(quantize(card.balance), quantize(order_amount)))

    @transaction.atomic
    def redeem(self, gift_card_id: int, amount: Decimal, *, booking: "Booking") -> GiftCardTransaction:
        """Take ``amount`` off the card; the card becomes used once it is empty."""
        amount = quantize(amount)
        if amount <= 0:
            raise ValueError("Redeemed amount must be positive")

        card = lock_queryset_if_possible(GiftCard.objects.filter(pk=gift_card_id)).get()
        if card.status != GiftCard.Status.ACTIVE:
            raise GiftCardInvalid(f"Gift card is {card.status}")

        redeemed = min(quantize(card.balance), amount)
        if redeemed < amount:
            raise GiftCardInvalid(f"Gift card balance {card.balance} is lower than {amount}")

        card.balance = quantize(card.balance - redeemed)
        if card.balance <= 0:
            card.status = GiftCard.Status.USED
        card.save(update_fields=["balance", "status", "updated_at"])

        logger.info(f"Gift card {card.code} redeemed {redeemed} on booking {booking.reference}, balance {card.balance}")
        return GiftCardTransaction.objects.create(
            gift_card=card,
            booking=booking,
            type=GiftCardTransaction.Type.REDEEM,
            amount=-redeemed,
            balance_after=card.balance,
        )

    @transaction.atomic
    def refund(self, gift_card_id: int, amount: Decimal, *, booking: "Booking", note: str = "") -> GiftCardTransaction:
        amount = quantize(amount)
        if amount <= 0:
            raise ValueError("Refunded amount must be positive")

        card = lock_queryset_if_possible(GiftCard.objects.filter(pk=gift_card_id)).get()
        card.balance = quantize(card.balance + amount)
        if card.status == GiftCard.Status.USED:
            card.status = GiftCard.Status.ACTIVE
        card.save(update_fields=["balance", "status", "updated_at"])

        logger.info(f"Gift card {card.code} refunded {amount} from booking {booking.reference}")
        return GiftCardTransaction.objects.create(
            gift_card=card,
            booking=booking,
            type=GiftCardTransaction.Type.REFUND,
            amount=amount,
            balance_after=card.balance,
            note=note,
        )

    def expire_old_cards(self, today=None) -> int:
        """Mark active cards past their end date as expired and zero their balance."""
        today = today or timezone.localdate()
        expired = 0
        for card_id in GiftCard.objects.filter(status=GiftCard.Status.ACTIVE, valid_until__lt=today).values_list(
            "pk", flat=True
        ):
            with transaction.atomic():
                card = lock_queryset_if_possible(GiftCard.objects.filter(pk=card_id)).get()
                if card.status != GiftCard.Status.ACTIVE:
                    continue
                remaining = card.balance
                card.status = GiftCard.Status.EXPIRED
                card.balance = Decimal("0.00")
                card.save(update_fields=["balance", "status", "updated_at"])
                if remaining > 0:
                    GiftCardTransaction.objects.create(
                        gift_card=card,
                        type=GiftCardTransaction.Type.EXPIRE,
                        amount=-remaining,
                        balance_after=Decimal("0.00"),
                    )
            expired += 1
        if expired:
            logger.info(f"Expired {expired} gift cards")
        return expired
