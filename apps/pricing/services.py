"""Pricing services: rule snapshot repository and the pricing engine."""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal

from django.utils import timezone  # type: ignore

from .domain.engine import PriceCalculation, RuleSnapshot, evaluate_rules
from .models import PricingRule

logger = logging.getLogger(__name__)


class DjangoPricingRuleRepository:
    """Reads active rules into an immutable snapshot."""

    def active_rules(self, applies_to: str) -> tuple[RuleSnapshot, ...]:
        queryset = PricingRule.objects.filter(
            is_active=True,
            applies_to__in=("all", applies_to),
        ).order_by("-priority", "id")
        return tuple(rule.to_snapshot() for rule in queryset)


class PricingEngine:
    """
    Dynamic pricing for bookable items

    The active rule set is read once per call, so an admin editing
    rules mid-request cannot produce a mixed evaluation.
    """

    def __init__(self, rules=None):
        self.rules = rules or DjangoPricingRuleRepository()

    def calculate_price(
        self,
        base_price: Decimal,
        booking_date: date,
        applies_to: str = "all",
        item_type: str | None = None,
        item_id: int | None = None,
        guest_count: int = 1,
        duration_hours: int | None = None,
        *,
        today: date | None = None,
    ) -> PriceCalculation:
        snapshot = self.rules.active_rules(applies_to)
        result = evaluate_rules(
            snapshot,
            base_price=base_price,
            booking_date=booking_date,
            today=today or timezone.localdate(),
            applies_to=applies_to,
            item_type=item_type,
            item_id=item_id,
            guests=guest_count,
            duration_hours=duration_hours,
        )
        logger.debug(
            f"Priced {base_price} on {booking_date} for {applies_to}:{item_id} -> "
            f"{result.final_price} (rules {list(result.applied_rule_ids)})"
        )
        return result

    def price_calendar(
        self,
        base_price: Decimal,
        year: int,
        month: int,
        applies_to: str,
        item_type: str | None = None,
        item_id: int | None = None,
        *,
        today: date | None = None,
    ) -> list[dict]:
        """Price every day of a month with the same rule snapshot."""
        snapshot = self.rules.active_rules(applies_to)
        today = today or timezone.localdate()
        first_day = date(year, month, 1)
        days_in_month = calendar.monthrange(year, month)[1]

        days = []
        for offset in range(days_in_month):
            day = first_day + timedelta(days=offset)
            result = evaluate_rules(
                snapshot,
                base_price=base_price,
                booking_date=day,
                today=today,
                applies_to=applies_to,
                item_type=item_type,
                item_id=item_id,
            )
            days.append(
                {
                    "date": day,
                    "price": result.final_price,
                    "base_price": result.base_price,
                    "has_discount": result.total_adjustment < 0,
                    "has_premium": result.total_adjustment > 0,
                    "adjustment_percent": result.discount_percent or result.premium_percent,
                    "rules_applied": len(result.applied_rule_ids),
                }
            )
        return days
