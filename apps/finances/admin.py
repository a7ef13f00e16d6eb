"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment, PaymentTransaction


class PaymentTransactionInline(admin.TabularInline):
    model = PaymentTransaction
    extra = 0
    can_delete = False
    readonly_fields = ("event", "payload", "status", "created_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("booking", "provider", "transaction_id", "method", "status", "amount", "paid_at")
    list_filter = ("status", "method", "provider")
    search_fields = ("transaction_id", "booking__reference")
    readonly_fields = ("created_at", "updated_at", "paid_at")
    inlines = [PaymentTransactionInline]
