"""
Pricing Engine

Pure evaluation of dynamic pricing rules. The engine works on an
immutable snapshot of the rule set so that one calculation never sees a
half-edited rule table.

Rule layering:
- Stackable rules are always applied and summed
- Non-stackable premiums (positive adjustments) are all applied
- Among non-stackable discounts only the deepest one is applied;
  equal discounts resolve to the lowest rule id
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Tuple

from shared.domain.value_objects import quantize

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


class RuleType(str, Enum):
    SEASON = 'season'
    SPECIAL_DATE = 'special_date'
    DAY_OF_WEEK = 'day_of_week'
    EARLY_BIRD = 'early_bird'
    LAST_MINUTE = 'last_minute'
    GROUP_SIZE = 'group_size'
    DURATION = 'duration'


DATED_RULE_TYPES = (RuleType.SEASON.value, RuleType.SPECIAL_DATE.value)


class AdjustmentType(str, Enum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


@dataclass(frozen=True)
class RuleSnapshot:
    """Immutable copy of one pricing rule taken at the start of a calculation"""
    id: int
    name: str
    type: str
    adjustment_type: str
    adjustment_value: Decimal
    applies_to: str = 'all'
    vessel_types: Tuple[str, ...] = ()
    tour_categories: Tuple[str, ...] = ()
    vessel_ids: Tuple[int, ...] = ()
    tour_ids: Tuple[int, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    days_of_week: Tuple[str, ...] = ()
    days_before_booking: int | None = None
    days_before_max: int | None = None
    min_guests: int | None = None
    max_guests: int | None = None
    min_duration_hours: int | None = None
    priority: int = 0
    is_stackable: bool = False

    def adjustment_for(self, base_price: Decimal) -> Decimal:
        """Signed adjustment this rule produces for the given base price"""
        value = Decimal(self.adjustment_value)
        if self.adjustment_type == AdjustmentType.PERCENTAGE.value:
            return quantize(base_price * value / Decimal('100'))
        return quantize(value)

    def in_scope(self, applies_to: str, item_type: str | None, item_id: int | None) -> bool:
        if self.applies_to not in ('all', applies_to):
            return False

        if applies_to == 'vessels':
            types, ids = self.vessel_types, self.vessel_ids
        elif applies_to == 'tours':
            types, ids = self.tour_categories, self.tour_ids
        else:
            return True

        if types and item_type not in types:
            return False
        if ids and item_id not in ids:
            return False
        return True

    def in_date_window(self, booking_date: date) -> bool:
        if self.type not in DATED_RULE_TYPES:
            return True
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= booking_date <= self.end_date

    def conditions_met(
        self,
        *,
        booking_date: date,
        days_ahead: int,
        guests: int,
        duration_hours: int | None,
    ) -> bool:
        """Check the type-specific condition; a failing rule is discarded entirely"""
        if self.type == RuleType.DAY_OF_WEEK.value:
            weekday = WEEKDAYS[booking_date.weekday()]
            if self.days_of_week and weekday not in self.days_of_week:
                return False

        elif self.type == RuleType.EARLY_BIRD.value:
            if self.days_before_booking and days_ahead < self.days_before_booking:
                return False

        elif self.type == RuleType.LAST_MINUTE.value:
            if self.days_before_max and days_ahead > self.days_before_max:
                return False

        elif self.type == RuleType.GROUP_SIZE.value:
            if self.min_guests and guests < self.min_guests:
                return False
            if self.max_guests and guests > self.max_guests:
                return False

        elif self.type == RuleType.DURATION.value:
            if duration_hours is None:
                return False
            if self.min_duration_hours and duration_hours < self.min_duration_hours:
                return False

        return True


@dataclass(frozen=True)
class AppliedAdjustment:
    rule_id: int
    rule_name: str
    rule_type: str
    adjustment_type: str
    adjustment_value: Decimal
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            'rule_id': self.rule_id,
            'rule_name': self.rule_name,
            'type': self.rule_type,
            'adjustment_type': self.adjustment_type,
            'adjustment_value': str(self.adjustment_value),
            'amount': str(self.amount),
        }


@dataclass(frozen=True)
class PriceCalculation:
    """Result of running the engine for one base price"""
    base_price: Decimal
    final_price: Decimal
    total_adjustment: Decimal
    applied_rule_ids: Tuple[int, ...]
    breakdown: Tuple[AppliedAdjustment, ...]

    @property
    def discount_percent(self) -> Decimal:
        if self.total_adjustment >= 0 or not self.base_price:
            return Decimal('0')
        return (abs(self.total_adjustment) / self.base_price * 100).quantize(Decimal('0.1'))

    @property
    def premium_percent(self) -> Decimal:
        if self.total_adjustment <= 0 or not self.base_price:
            return Decimal('0')
        return (self.total_adjustment / self.base_price * 100).quantize(Decimal('0.1'))

    def to_dict(self) -> dict:
        return {
            'base_price': str(self.base_price),
            'final_price': str(self.final_price),
            'total_adjustment': str(self.total_adjustment),
            'applied_rule_ids': list(self.applied_rule_ids),
            'breakdown': [adjustment.to_dict() for adjustment in self.breakdown],
            'discount_percent': str(self.discount_percent),
            'premium_percent': str(self.premium_percent),
        }


def _applied(rule: RuleSnapshot, amount: Decimal) -> AppliedAdjustment:
    return AppliedAdjustment(
        rule_id=rule.id,
        rule_name=rule.name,
        rule_type=rule.type,
        adjustment_type=rule.adjustment_type,
        adjustment_value=Decimal(rule.adjustment_value),
        amount=amount,
    )


def evaluate_rules(
    rules: Iterable[RuleSnapshot],
    *,
    base_price: Decimal,
    booking_date: date,
    today: date,
    applies_to: str = 'all',
    item_type: str | None = None,
    item_id: int | None = None,
    guests: int = 1,
    duration_hours: int | None = None,
) -> PriceCalculation:
    """
    Apply a rule snapshot to a base price

    Rules are visited by descending priority. Priority only changes the
    order of the breakdown, never which rules are applied.
    """
    base_price = quantize(base_price)
    days_ahead = (booking_date - today).days

    ordered = sorted(rules, key=lambda rule: (-rule.priority, rule.id))

    applied = []
    discounts = []
    premiums = []

    for rule in ordered:
        if not rule.in_scope(applies_to, item_type, item_id):
            continue
        if not rule.in_date_window(booking_date):
            continue
        if not rule.conditions_met(
            booking_date=booking_date,
            days_ahead=days_ahead,
            guests=guests,
            duration_hours=duration_hours,
        ):
            continue

        amount = rule.adjustment_for(base_price)
        if rule.is_stackable:
            applied.append(_applied(rule, amount))
        elif amount < 0:
            discounts.append((amount, rule))
        else:
            premiums.append(_applied(rule, amount))

    if discounts:
        amount, best = min(discounts, key=lambda pair: (pair[0], pair[1].id))
        applied.append(_applied(best, amount))

    applied.extend(premiums)

    total_adjustment = sum((adjustment.amount for adjustment in applied), Decimal('0.00'))
    final_price = max(Decimal('0.00'), base_price + total_adjustment)

    return PriceCalculation(
        base_price=base_price,
        final_price=quantize(final_price),
        total_adjustment=quantize(total_adjustment),
        applied_rule_ids=tuple(adjustment.rule_id for adjustment in applied),
        breakdown=tuple(applied),
    )
