"""Pricing rule model."""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.catalog.models import AppliesTo

from .domain.engine import WEEKDAYS, RuleSnapshot


class PricingRule(models.Model):
    """Admin-editable price adjustment evaluated by the pricing engine."""

    class Type(models.TextChoices):
        SEASON = "season", _("Season")
        SPECIAL_DATE = "special_date", _("Special date")
        DAY_OF_WEEK = "day_of_week", _("Day of week")
        EARLY_BIRD = "early_bird", _("Early bird")
        LAST_MINUTE = "last_minute", _("Last minute")
        GROUP_SIZE = "group_size", _("Group size")
        DURATION = "duration", _("Duration")

    class AdjustmentType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED = "fixed", _("Fixed amount")

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)
    type = models.CharField(max_length=20, choices=Type.choices)

    applies_to = models.CharField(max_length=10, choices=AppliesTo.choices, default=AppliesTo.ALL)
    vessel_types = models.JSONField(default=list, blank=True)
    tour_categories = models.JSONField(default=list, blank=True)
    vessel_ids = models.JSONField(default=list, blank=True)
    tour_ids = models.JSONField(default=list, blank=True)

    start_date = models.DateField(null=True, blank=True, help_text=_("For season and special date rules."))
    end_date = models.DateField(null=True, blank=True)
    days_of_week = models.JSONField(default=list, blank=True, help_text=_('e.g. ["saturday", "sunday"]'))
    days_before_booking = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Early bird: minimum days ahead.")
    )
    days_before_max = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Last minute: maximum days ahead.")
    )
    min_guests = models.PositiveIntegerField(null=True, blank=True)
    max_guests = models.PositiveIntegerField(null=True, blank=True)
    min_duration_hours = models.PositiveIntegerField(null=True, blank=True)

    adjustment_type = models.CharField(max_length=20, choices=AdjustmentType.choices)
    adjustment_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Positive values add a premium, negative values give a discount."),
    )

    priority = models.IntegerField(default=0, help_text=_("Higher values are evaluated first."))
    is_stackable = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Pricing rule")
        verbose_name_plural = _("Pricing rules")
        ordering = ["-priority", "id"]
        indexes = [
            models.Index(fields=["is_active", "applies_to"]),
        ]

    def __str__(self) -> str:
        sign = "+" if self.adjustment_value >= 0 else ""
        unit = "%" if self.adjustment_type == self.AdjustmentType.PERCENTAGE else " THB"
        return f"{self.name} ({sign}{self.adjustment_value}{unit})"

    def clean(self) -> None:
        if self.type in (self.Type.SEASON, self.Type.SPECIAL_DATE):
            if not self.start_date or not self.end_date:
                raise ValidationError(_("Season and special date rules need a start and end date."))
            if self.start_date > self.end_date:
                raise ValidationError(_("Start date must not be after end date."))

        unknown_days = set(self.days_of_week or []) - set(WEEKDAYS)
        if unknown_days:
            raise ValidationError(
                _("Unknown weekdays: %(days)s") % {"days": ", ".join(sorted(unknown_days))}
            )

        if self.min_guests and self.max_guests and self.min_guests > self.max_guests:
            raise ValidationError(_("Minimum guests must not exceed maximum guests."))

    def to_snapshot(self) -> RuleSnapshot:
        return RuleSnapshot(
            id=self.pk,
            name=self.name,
            type=self.type,
            adjustment_type=self.adjustment_type,
            adjustment_value=Decimal(self.adjustment_value),
            applies_to=self.applies_to,
            vessel_types=tuple(self.vessel_types or ()),
            tour_categories=tuple(self.tour_categories or ()),
            vessel_ids=tuple(int(pk) for pk in self.vessel_ids or ()),
            tour_ids=tuple(int(pk) for pk in self.tour_ids or ()),
            start_date=self.start_date,
            end_date=self.end_date,
            days_of_week=tuple(day.lower() for day in self.days_of_week or ()),
            days_before_booking=self.days_before_booking,
            days_before_max=self.days_before_max,
            min_guests=self.min_guests,
            max_guests=self.max_guests,
            min_duration_hours=self.min_duration_hours,
            priority=self.priority,
            is_stackable=self.is_stackable,
        )
