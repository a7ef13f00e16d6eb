"""Admin registrations for promo codes and gift cards."""

from __future__ import annotations

from django.contrib import admin

from .models import GiftCard, GiftCardTransaction, PromoCode, PromoCodeUsage


class PromoCodeUsageInline(admin.TabularInline):
    model = PromoCodeUsage
    extra = 0
    can_delete = False
    readonly_fields = ("user", "booking", "discount_applied", "used_at")


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "value",
        "used_count",
        "max_uses",
        "valid_from",
        "valid_until",
        "is_active",
    )
    list_filter = ("discount_type", "applies_to", "is_active", "is_public")
    search_fields = ("code", "description")
    readonly_fields = ("used_count", "created_at")
    inlines = [PromoCodeUsageInline]


class GiftCardTransactionInline(admin.TabularInline):
    model = GiftCardTransaction
    extra = 0
    can_delete = False
    readonly_fields = ("booking", "type", "amount", "balance_after", "note", "created_at")


@admin.register(GiftCard)
class GiftCardAdmin(admin.ModelAdmin):
    list_display = ("code", "initial_amount", "balance", "status", "valid_until", "applies_to")
    list_filter = ("status", "applies_to")
    search_fields = ("code", "recipient_email", "purchaser__email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [GiftCardTransactionInline]
