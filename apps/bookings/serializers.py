"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.catalog.services import BOOKABLE_TYPES, AddonSelection

from .application.command_handlers import CreateBookingCommand
from .models import Booking, BookingAddonSelection, BookingStatusHistory


class AddonSelectionSerializer(serializers.Serializer):
    addon_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class BookingCreateSerializer(serializers.Serializer):
    """Booking request submitted by a guest."""

    bookable_type = serializers.ChoiceField(choices=[(t, t) for t in BOOKABLE_TYPES])
    bookable_id = serializers.IntegerField()
    booking_date = serializers.DateField()
    start_time = serializers.TimeField(required=False, allow_null=True)
    duration_hours = serializers.IntegerField(required=False, allow_null=True)
    adults = serializers.IntegerField(default=1)
    children = serializers.IntegerField(default=0)
    infants = serializers.IntegerField(default=0)
    pickup = serializers.BooleanField(default=False)
    pickup_address = serializers.CharField(required=False, allow_blank=True, default="")
    addons = AddonSelectionSerializer(many=True, required=False, default=list)
    package_id = serializers.IntegerField(required=False, allow_null=True)
    promo_code = serializers.CharField(required=False, allow_blank=True, default="")
    cashback_to_use = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=Decimal("0"))
    gift_card_code = serializers.CharField(required=False, allow_blank=True, default="")
    contact_name = serializers.CharField(required=False, allow_blank=True, default="")
    contact_phone = serializers.CharField(required=False, allow_blank=True, default="")
    contact_email = serializers.EmailField(required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")

    def to_command(self, guest_id: int, source: str = "web") -> CreateBookingCommand:
        data = dict(self.validated_data)
        addons = [AddonSelection(addon_id=a["addon_id"], quantity=a["quantity"]) for a in data.pop("addons")]
        return CreateBookingCommand(guest_id=guest_id, addons=addons, source=source, **data)


class BookingAddonSelectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingAddonSelection
        fields = ["addon", "name", "price_type", "quantity", "unit_price", "total_price", "included_in_package"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its frozen price breakdown."""

    guest_id = serializers.ReadOnlyField(source="guest.id")
    promo_code = serializers.ReadOnlyField(source="promo_code.code")
    gift_card = serializers.ReadOnlyField(source="gift_card.code")
    loyalty_tier = serializers.ReadOnlyField(source="loyalty_tier.slug")
    addons = BookingAddonSelectionSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference",
            "guest_id",
            "bookable_type",
            "bookable_id",
            "package",
            "vendor",
            "booking_date",
            "start_time",
            "duration_hours",
            "adults_count",
            "children_count",
            "infants_count",
            "pickup",
            "pickup_address",
            "base_price",
            "dynamic_adjustment",
            "pricing_rules_applied",
            "extras_price",
            "pickup_fee",
            "package_discount",
            "subtotal",
            "promo_code",
            "promo_discount",
            "loyalty_tier",
            "loyalty_discount",
            "cashback_used",
            "gift_card",
            "gift_card_amount",
            "total_discount",
            "total_price",
            "currency",
            "cashback_percent",
            "cashback_earned",
            "cashback_status",
            "status",
            "confirmed_at",
            "paid_at",
            "completed_at",
            "cancelled_at",
            "refunded_at",
            "cancellation_reason",
            "payment_method",
            "contact_name",
            "contact_phone",
            "contact_email",
            "special_requests",
            "source",
            "addons",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingStatusHistory
        fields = ["id", "old_status", "new_status", "actor_type", "actor_id", "reason", "metadata", "created_at"]
        read_only_fields = fields


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class TransitionRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class TransitionResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    old_status = serializers.CharField(allow_null=True)
    new_status = serializers.CharField(allow_null=True)
    changed = serializers.BooleanField()
