"""
Discount Composer

Layers the customer-facing discounts on top of a priced subtotal in a
fixed order: promo code, loyalty tier, cashback, gift card. The order
matters because the cashback ceiling and the gift card amount are both
capped by what the earlier stages leave over.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.value_objects import quantize

from .errors import InvalidBookingRequest

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class PromoTerms:
    """Discount terms of an already validated promo code"""
    discount_type: str
    value: Decimal
    max_discount_amount: Decimal | None = None

    def discount_for(self, amount: Decimal) -> Decimal:
        if self.discount_type == 'percentage':
            discount = quantize(amount * Decimal(self.value) / Decimal('100'))
        else:
            discount = quantize(self.value)

        if self.max_discount_amount is not None:
            discount = min(discount, quantize(self.max_discount_amount))

        return max(ZERO, min(discount, quantize(amount)))


@dataclass(frozen=True)
class DiscountBreakdown:
    subtotal: Decimal
    promo_discount: Decimal = ZERO
    loyalty_discount: Decimal = ZERO
    cashback_used: Decimal = ZERO
    gift_card_amount: Decimal = ZERO

    @property
    def total_discount(self) -> Decimal:
        return self.promo_discount + self.loyalty_discount + self.cashback_used + self.gift_card_amount

    @property
    def total(self) -> Decimal:
        return max(ZERO, self.subtotal - self.total_discount)

    def to_dict(self) -> dict:
        return {
            'subtotal': str(self.subtotal),
            'promo_discount': str(self.promo_discount),
            'loyalty_discount': str(self.loyalty_discount),
            'cashback_used': str(self.cashback_used),
            'gift_card_amount': str(self.gift_card_amount),
            'total_discount': str(self.total_discount),
            'total': str(self.total),
        }


class DiscountComposer:
    """
    Computes promo, loyalty, cashback and gift card discounts

    Promo and loyalty are both computed against the full subtotal.
    Cashback is limited by the request, the owner's balance and a share
    of the subtotal. The gift card covers whatever is left. Every stage
    is clamped to the amount still outstanding, so the sum of discounts
    never exceeds the subtotal.
    """

    def __init__(self, max_cashback_share: Decimal = Decimal('0.5')):
        self.max_cashback_share = Decimal(max_cashback_share)

    def compose(
        self,
        subtotal: Decimal,
        *,
        promo: PromoTerms | None = None,
        loyalty_percent: Decimal = ZERO,
        cashback_requested: Decimal = ZERO,
        cashback_balance: Decimal = ZERO,
        gift_card_balance: Decimal | None = None,
    ) -> DiscountBreakdown:
        subtotal = max(ZERO, quantize(subtotal))
        cashback_requested = quantize(cashback_requested or ZERO)
        if cashback_requested < 0:
            raise InvalidBookingRequest('Requested cashback cannot be negative')

        remaining = subtotal

        promo_discount = min(promo.discount_for(subtotal), remaining) if promo else ZERO
        remaining -= promo_discount

        loyalty_discount = ZERO
        if loyalty_percent:
            loyalty_discount = min(quantize(subtotal * Decimal(loyalty_percent) / Decimal('100')), remaining)
            remaining -= loyalty_discount

        cashback_used = ZERO
        if cashback_requested > 0:
            cashback_used = max(ZERO, min(
                cashback_requested,
                quantize(cashback_balance),
                quantize(subtotal * self.max_cashback_share),
                remaining,
            ))
            remaining -= cashback_used

        gift_card_amount = ZERO
        if gift_card_balance is not None:
            gift_card_amount = max(ZERO, min(quantize(gift_card_balance), remaining))

        return DiscountBreakdown(
            subtotal=subtotal,
            promo_discount=promo_discount,
            loyalty_discount=loyalty_discount,
            cashback_used=cashback_used,
            gift_card_amount=gift_card_amount,
        )
