"""Admin registration for pricing rules."""

from __future__ import annotations

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import PricingRule


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "type",
        "applies_to",
        "adjustment_type",
        "adjustment_value",
        "priority",
        "is_stackable",
        "is_active",
    )
    list_filter = ("type", "applies_to", "adjustment_type", "is_stackable", "is_active")
    search_fields = ("name", "description")
    list_editable = ("is_active",)
    fieldsets = (
        (None, {"fields": ("name", "description", "type", "priority", "is_stackable", "is_active")}),
        (
            _("Scope"),
            {"fields": ("applies_to", "vessel_types", "tour_categories", "vessel_ids", "tour_ids")},
        ),
        (
            _("Conditions"),
            {
                "fields": (
                    "start_date",
                    "end_date",
                    "days_of_week",
                    "days_before_booking",
                    "days_before_max",
                    "min_guests",
                    "max_guests",
                    "min_duration_hours",
                )
            },
        ),
        (_("Adjustment"), {"fields": ("adjustment_type", "adjustment_value")}),
    )
