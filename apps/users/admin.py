"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import CashbackTransaction, CustomUser, LoyaltyTier


@admin.register(LoyaltyTier)
class LoyaltyTierAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "slug",
        "min_bookings",
        "min_spent",
        "cashback_percent",
        "extra_discount_percent",
        "sort_order",
        "is_active",
    )
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


class CashbackTransactionInline(admin.TabularInline):
    model = CashbackTransaction
    fk_name = "user"
    extra = 0
    can_delete = False
    fields = ("created_at", "type", "amount", "balance_after", "booking", "description")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(CustomUser)
class CustomUserAdmin(BaseUserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            _("Personal info"),
            {"fields": ("username", "first_name", "last_name", "phone", "telegram_id")},
        ),
        (
            _("Loyalty"),
            {
                "fields": (
                    "cashback_balance",
                    "loyalty_tier",
                    "total_bookings",
                    "total_spent",
                    "referred_by",
                )
            },
        ),
        (_("Role"), {"fields": ("role",)}),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined", "created_at", "updated_at")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "email",
                    "password1",
                    "password2",
                    "first_name",
                    "last_name",
                    "phone",
                    "role",
                    "is_staff",
                    "is_superuser",
                ),
            },
        ),
    )
    list_display = (
        "email",
        "role",
        "phone",
        "loyalty_tier",
        "cashback_balance",
        "total_bookings",
        "is_active",
        "is_staff",
    )
    list_filter = ("role", "loyalty_tier", "is_active", "is_staff")
    search_fields = ("email", "phone", "first_name", "last_name")
    ordering = ("email",)
    # Balances only move through the cashback ledger.
    readonly_fields = (
        "cashback_balance",
        "total_bookings",
        "total_spent",
        "created_at",
        "updated_at",
        "date_joined",
    )
    raw_id_fields = ("referred_by",)
    inlines = [CashbackTransactionInline]


@admin.register(CashbackTransaction)
class CashbackTransactionAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "amount", "balance_after", "booking", "created_at")
    list_filter = ("type",)
    search_fields = ("user__email", "booking__reference", "description")
    readonly_fields = (
        "user",
        "booking",
        "referred_user",
        "type",
        "amount",
        "balance_after",
        "description",
        "created_at",
    )
