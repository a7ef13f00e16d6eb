"""Serializers for the pricing API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.models import AppliesTo
from apps.catalog.services import BOOKABLE_TYPES


class PriceQuoteRequestSerializer(serializers.Serializer):
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    booking_date = serializers.DateField()
    applies_to = serializers.ChoiceField(choices=AppliesTo.choices, default=AppliesTo.ALL)
    item_type = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    item_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    guests = serializers.IntegerField(min_value=1, default=1)
    duration_hours = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)


class AppliedAdjustmentSerializer(serializers.Serializer):
    rule_id = serializers.IntegerField()
    rule_name = serializers.CharField()
    rule_type = serializers.CharField()
    adjustment_type = serializers.CharField()
    adjustment_value = serializers.DecimalField(max_digits=10, decimal_places=2)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class PriceQuoteSerializer(serializers.Serializer):
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_adjustment = serializers.DecimalField(max_digits=12, decimal_places=2)
    applied_rule_ids = serializers.ListField(child=serializers.IntegerField())
    breakdown = AppliedAdjustmentSerializer(many=True)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=1)
    premium_percent = serializers.DecimalField(max_digits=7, decimal_places=1)


class PriceCalendarRequestSerializer(serializers.Serializer):
    item_type = serializers.ChoiceField(choices=[(t, t) for t in BOOKABLE_TYPES])
    item_id = serializers.IntegerField()
    month = serializers.RegexField(r"^\d{4}-(0[1-9]|1[0-2])$", help_text="YYYY-MM")
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class PriceCalendarDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    has_discount = serializers.BooleanField()
    has_premium = serializers.BooleanField()
    adjustment_percent = serializers.DecimalField(max_digits=7, decimal_places=1)
    rules_applied = serializers.IntegerField()
