"""Unit tests for the pure pricing rule evaluation."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from apps.pricing.domain.engine import RuleSnapshot, evaluate_rules

TODAY = date(2026, 3, 2)  # Monday
SATURDAY = date(2026, 3, 14)


def rule(rule_id: int, **overrides) -> RuleSnapshot:
    values = {
        "id": rule_id,
        "name": f"Rule {rule_id}",
        "type": "day_of_week",
        "adjustment_type": "percentage",
        "adjustment_value": Decimal("-10"),
    }
    values.update(overrides)
    return RuleSnapshot(**values)


def price(rules, **kwargs):
    params = {
        "base_price": Decimal("10000"),
        "booking_date": SATURDAY,
        "today": TODAY,
        "applies_to": "vessels",
        "item_type": "yacht",
        "item_id": 1,
    }
    params.update(kwargs)
    return evaluate_rules(rules, **params)


def test_best_non_stackable_discount_wins() -> None:
    weekend = rule(1, days_of_week=("saturday", "sunday"))
    holiday = rule(
        2,
        type="special_date",
        start_date=SATURDAY,
        end_date=SATURDAY,
        adjustment_value=Decimal("-5"),
        priority=10,
    )

    result = price([weekend, holiday])

    assert result.applied_rule_ids == (1,)
    assert result.total_adjustment == Decimal("-1000.00")
    assert result.final_price == Decimal("9000.00")
    assert result.discount_percent == Decimal("10.0")


def test_equal_discounts_resolve_to_lowest_id() -> None:
    rules = [rule(7), rule(3), rule(5, priority=99)]

    first = price(rules)
    second = price(list(reversed(rules)))

    assert first.applied_rule_ids == (3,)
    assert second.applied_rule_ids == (3,)


def test_premiums_and_stackable_rules_accumulate() -> None:
    rules = [
        rule(1, adjustment_value=Decimal("-10")),
        rule(2, adjustment_value=Decimal("-20")),
        rule(3, adjustment_value=Decimal("15")),
        rule(4, adjustment_type="fixed", adjustment_value=Decimal("500")),
        rule(5, adjustment_value=Decimal("-5"), is_stackable=True),
    ]

    result = price(rules)

    assert set(result.applied_rule_ids) == {2, 3, 4, 5}
    assert result.total_adjustment == Decimal("-2000") + Decimal("1500") + Decimal("500") + Decimal("-500")
    assert result.final_price == result.base_price + sum(a.amount for a in result.breakdown)


def test_final_price_never_negative() -> None:
    result = price(
        [rule(1, adjustment_type="fixed", adjustment_value=Decimal("-50000"), is_stackable=True)],
        base_price=Decimal("1000"),
    )

    assert result.final_price == Decimal("0.00")
    assert result.total_adjustment == Decimal("-50000.00")


def test_duration_rule_requires_duration() -> None:
    long_charter = rule(1, type="duration", min_duration_hours=6)

    assert price([long_charter]).applied_rule_ids == ()
    assert price([long_charter], duration_hours=4).applied_rule_ids == ()
    assert price([long_charter], duration_hours=8).applied_rule_ids == (1,)


def test_early_bird_and_last_minute_windows() -> None:
    early_bird = rule(1, type="early_bird", days_before_booking=30, is_stackable=True)
    last_minute = rule(2, type="last_minute", days_before_max=3, is_stackable=True)

    far = price([early_bird, last_minute], booking_date=TODAY + timedelta(days=45))
    near = price([early_bird, last_minute], booking_date=TODAY + timedelta(days=2))

    assert far.applied_rule_ids == (1,)
    assert near.applied_rule_ids == (2,)


def test_group_size_range() -> None:
    group = rule(1, type="group_size", min_guests=6, max_guests=12)

    assert price([group], guests=4).applied_rule_ids == ()
    assert price([group], guests=8).applied_rule_ids == (1,)
    assert price([group], guests=20).applied_rule_ids == ()


def test_scope_restricts_by_kind_type_and_id() -> None:
    tours_only = rule(1, applies_to="tours")
    catamarans = rule(2, vessel_types=("catamaran",))
    this_yacht = rule(3, vessel_ids=(1,), adjustment_value=Decimal("-3"), is_stackable=True)

    result = price([tours_only, catamarans, this_yacht])

    assert result.applied_rule_ids == (3,)


def test_season_without_dates_never_matches() -> None:
    season = rule(1, type="season", start_date=None, end_date=None)

    assert price([season]).applied_rule_ids == ()
