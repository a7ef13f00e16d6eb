"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR, CashbackTransaction, LoyaltyTier

User = get_user_model()


class LoyaltyTierSerializer(serializers.ModelSerializer):
    class Meta:
        model = LoyaltyTier
        fields = [
            "id",
            "name",
            "slug",
            "min_bookings",
            "min_spent",
            "cashback_percent",
            "extra_discount_percent",
        ]


class UserSerializer(serializers.ModelSerializer):
    """Main user serializer, including the loyalty wallet."""

    loyalty_tier = LoyaltyTierSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "telegram_id",
            "cashback_balance",
            "loyalty_tier",
            "total_bookings",
            "total_spent",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "role",
            "cashback_balance",
            "loyalty_tier",
            "total_bookings",
            "total_spent",
            "created_at",
            "updated_at",
        ]


class RegisterSerializer(serializers.ModelSerializer):
    """Guest sign-up by email, optionally referred by an existing customer."""

    password = serializers.CharField(write_only=True, min_length=8)
    phone = serializers.CharField(validators=[PHONE_VALIDATOR], required=False)
    referrer_email = serializers.EmailField(write_only=True, required=False)

    class Meta:
        model = User
        fields = [
            "email",
            "password",
            "phone",
            "first_name",
            "last_name",
            "username",
            "referrer_email",
        ]
        extra_kwargs = {
            "first_name": {"required": False, "allow_blank": True},
            "last_name": {"required": False, "allow_blank": True},
            "username": {"required": False, "allow_blank": True},
        }

    def validate_referrer_email(self, value: str):
        referrer = User.objects.filter(email__iexact=value).first()
        if referrer is None:
            raise serializers.ValidationError("Referrer not found.")
        return referrer

    def create(self, validated_data):  # type: ignore
        password = validated_data.pop("password")
        referrer = validated_data.pop("referrer_email", None)
        return User.objects.create_user(password=password, referred_by=referrer, **validated_data)


class CashbackTransactionSerializer(serializers.ModelSerializer):
    booking_reference = serializers.CharField(source="booking.reference", read_only=True, default=None)

    class Meta:
        model = CashbackTransaction
        fields = ["id", "type", "amount", "balance_after", "booking_reference", "description", "created_at"]


class LoyaltyProgressSerializer(serializers.Serializer):
    current_tier = LoyaltyTierSerializer(allow_null=True)
    next_tier = LoyaltyTierSerializer(allow_null=True)
    total_bookings = serializers.IntegerField()
    total_spent = serializers.DecimalField(max_digits=14, decimal_places=2)
    bookings_progress = serializers.DecimalField(max_digits=4, decimal_places=1, allow_null=True)
    spent_progress = serializers.DecimalField(max_digits=4, decimal_places=1, allow_null=True)
