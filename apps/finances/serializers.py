"""Serializers for the finance domain (payments)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment, PaymentTransaction


class PaymentTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentTransaction
        fields = ["id", "event", "payload", "status", "created_at"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    """Payment record as reported by the provider."""

    booking_reference = serializers.ReadOnlyField(source="booking.reference")
    transactions = PaymentTransactionSerializer(many=True, read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "booking_reference",
            "method",
            "status",
            "amount",
            "currency",
            "provider",
            "transaction_id",
            "paid_at",
            "transactions",
            "created_at",
        ]
        read_only_fields = fields


class PaymentConfirmSerializer(serializers.Serializer):
    booking_reference = serializers.CharField(max_length=20)
    provider = serializers.CharField(max_length=50)
    transaction_id = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    method = serializers.ChoiceField(choices=Payment.Method.choices, required=False, allow_blank=True, default="")
    payload = serializers.DictField(required=False, default=dict)
