"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents non-negative monetary amounts with currency
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject

CENT = Decimal('0.01')

SUPPORTED_CURRENCIES = ('THB', 'USD', 'EUR', 'RUB')


def quantize(amount) -> Decimal:
    """Round an amount to whole satang using commercial rounding."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable; amounts are rounded to whole satang.
    """
    amount: Decimal
    currency: str = 'THB'

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")
        object.__setattr__(self, 'amount', quantize(self.amount))

    def percent(self, rate) -> 'Money':
        """Return ``rate`` percent of this amount."""
        return Money(self.amount * Decimal(str(rate)) / Decimal('100'), self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"
