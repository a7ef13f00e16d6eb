"""Serializers for promo code and gift card checks."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.services import BOOKABLE_TYPES


class PromoCodeCheckSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    bookable_type = serializers.ChoiceField(choices=[(t, t) for t in BOOKABLE_TYPES])
    item_id = serializers.IntegerField()
    order_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class GiftCardCheckSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    bookable_type = serializers.ChoiceField(choices=[(t, t) for t in BOOKABLE_TYPES])
    order_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
