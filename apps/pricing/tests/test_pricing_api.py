"""Integration tests for the pricing repository and endpoints."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Vessel
from apps.pricing.models import PricingRule
from apps.pricing.services import PricingEngine


def next_weekday(start: date, weekday: int) -> date:
    return start + timedelta(days=(weekday - start.weekday()) % 7 or 7)


@pytest.mark.django_db
def test_engine_reads_only_active_rules_in_scope() -> None:
    saturday = next_weekday(date.today() + timedelta(days=7), 5)
    weekend = PricingRule.objects.create(
        name="Weekend",
        type=PricingRule.Type.DAY_OF_WEEK,
        applies_to="vessels",
        days_of_week=["saturday", "sunday"],
        adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("20"),
    )
    PricingRule.objects.create(
        name="Disabled",
        type=PricingRule.Type.DAY_OF_WEEK,
        adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("-50"),
        is_active=False,
    )
    PricingRule.objects.create(
        name="Tours only",
        type=PricingRule.Type.DAY_OF_WEEK,
        applies_to="tours",
        adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("-30"),
    )

    result = PricingEngine().calculate_price(Decimal("10000"), saturday, "vessels", "yacht", 1)

    assert result.applied_rule_ids == (weekend.pk,)
    assert result.final_price == Decimal("12000.00")
    assert result.premium_percent == Decimal("20.0")


class PricingAPITests(APITestCase):
    def setUp(self) -> None:
        self.vessel = Vessel.objects.create(
            name="Sea Breeze",
            slug="sea-breeze",
            type=Vessel.Type.CATAMARAN,
            price_per_hour=Decimal("5000.00"),
            price_per_day=Decimal("30000.00"),
        )
        self.rule = PricingRule.objects.create(
            name="Weekday promo",
            type=PricingRule.Type.DAY_OF_WEEK,
            applies_to="vessels",
            days_of_week=["monday", "tuesday", "wednesday", "thursday"],
            adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("-10"),
        )

    def test_quote_returns_breakdown(self) -> None:
        monday = next_weekday(date.today() + timedelta(days=7), 0)
        response = self.client.post(
            reverse("pricing-quote"),
            {
                "base_price": "10000.00",
                "booking_date": str(monday),
                "applies_to": "vessels",
                "item_type": "catamaran",
                "item_id": self.vessel.pk,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Decimal(response.data["final_price"]), Decimal("9000.00"))
        self.assertEqual(response.data["applied_rule_ids"], [self.rule.pk])
        self.assertEqual(response.data["breakdown"][0]["rule_name"], "Weekday promo")

    def test_calendar_uses_full_day_price(self) -> None:
        response = self.client.get(
            reverse("pricing-calendar"),
            {"item_type": "vessel", "item_id": self.vessel.pk, "month": "2030-04"},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        days = response.data["days"]
        self.assertEqual(len(days), 30)
        monday = next(day for day in days if day["date"] == "2030-04-01")
        sunday = next(day for day in days if day["date"] == "2030-04-07")
        self.assertEqual(Decimal(monday["price"]), Decimal("27000.00"))
        self.assertTrue(monday["has_discount"])
        self.assertEqual(Decimal(sunday["price"]), Decimal("30000.00"))
        self.assertFalse(sunday["has_discount"])

    def test_calendar_unknown_item(self) -> None:
        response = self.client.get(
            reverse("pricing-calendar"),
            {"item_type": "vessel", "item_id": 9999, "month": "2030-04"},
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_calendar_rejects_bad_month(self) -> None:
        response = self.client.get(
            reverse("pricing-calendar"),
            {"item_type": "vessel", "item_id": self.vessel.pk, "month": "2030-13"},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
