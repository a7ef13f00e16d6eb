"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingAddonSelection, BookingStatusHistory, BookingStatusTransition


class BookingAddonSelectionInline(admin.TabularInline):
    model = BookingAddonSelection
    extra = 0
    can_delete = False
    readonly_fields = ("addon", "name", "price_type", "quantity", "unit_price", "total_price", "included_in_package")

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


class BookingStatusHistoryInline(admin.TabularInline):
    model = BookingStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("old_status", "new_status", "actor_type", "actor_id", "reason", "metadata", "created_at")

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "bookable_type",
        "bookable_id",
        "guest",
        "status",
        "booking_date",
        "total_price",
        "cashback_status",
        "created_at",
    )
    list_filter = ("status", "bookable_type", "cashback_status", "booking_date", "source")
    search_fields = ("reference", "guest__email", "contact_name", "contact_phone")
    date_hierarchy = "booking_date"
    inlines = [BookingAddonSelectionInline, BookingStatusHistoryInline]
    readonly_fields = (
        "reference",
        "status",
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
        "cashback_percent",
        "cashback_earned",
        "cashback_status",
        "vendor_commission",
        "confirmed_at",
        "paid_at",
        "completed_at",
        "cancelled_at",
        "refunded_at",
        "created_at",
        "updated_at",
    )

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(BookingStatusTransition)
class BookingStatusTransitionAdmin(admin.ModelAdmin):
    list_display = ("from_status", "to_status", "allowed_actors", "requires_reason", "auto_actions", "is_active")
    list_filter = ("from_status", "to_status", "requires_reason", "is_active")
    list_editable = ("is_active",)
