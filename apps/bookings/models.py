"""Booking models for Phuket Yachts."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.errors import UnknownAutoAction
from .domain.state_machine import ActorType, AutoAction, BookingStatus

ZERO = Decimal("0.00")


def _money_field(**kwargs) -> models.DecimalField:
    kwargs.setdefault("default", ZERO)
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class Booking(models.Model):
    """Charter or tour booking with its frozen price breakdown."""

    class Status(models.TextChoices):
        PENDING = BookingStatus.PENDING.value, _("Pending")
        CONFIRMED = BookingStatus.CONFIRMED.value, _("Confirmed")
        PAID = BookingStatus.PAID.value, _("Paid")
        COMPLETED = BookingStatus.COMPLETED.value, _("Completed")
        CANCELLED = BookingStatus.CANCELLED.value, _("Cancelled")
        REFUNDED = BookingStatus.REFUNDED.value, _("Refunded")
        NO_SHOW = BookingStatus.NO_SHOW.value, _("No show")

    class CashbackStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        CREDITED = "credited", _("Credited")
        CANCELLED = "cancelled", _("Cancelled")

    class BookableType(models.TextChoices):
        VESSEL = "vessel", _("Vessel")
        TOUR = "tour", _("Tour")

    reference = models.CharField(max_length=20, unique=True, editable=False)
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    bookable_type = models.CharField(max_length=10, choices=BookableType.choices)
    bookable_id = models.PositiveIntegerField()
    package = models.ForeignKey(
        "catalog.Package",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )
    vendor = models.ForeignKey(
        "catalog.Vendor",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )

    booking_date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    duration_hours = models.PositiveSmallIntegerField(null=True, blank=True)
    adults_count = models.PositiveSmallIntegerField(default=1)
    children_count = models.PositiveSmallIntegerField(default=0)
    infants_count = models.PositiveSmallIntegerField(default=0)
    pickup = models.BooleanField(default=False)
    pickup_address = models.CharField(max_length=500, blank=True)

    base_price = _money_field()
    dynamic_adjustment = _money_field(help_text=_("Signed total of applied pricing rules."))
    pricing_rules_applied = models.JSONField(default=list, blank=True)
    extras_price = _money_field()
    pickup_fee = _money_field()
    package_discount = _money_field()
    subtotal = _money_field()
    promo_code = models.ForeignKey(
        "promotions.PromoCode",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )
    promo_discount = _money_field()
    loyalty_tier = models.ForeignKey(
        "users.LoyaltyTier",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )
    loyalty_discount = _money_field()
    cashback_used = _money_field()
    gift_card = models.ForeignKey(
        "promotions.GiftCard",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )
    gift_card_amount = _money_field()
    total_discount = _money_field()
    total_price = _money_field()
    currency = models.CharField(max_length=3, default="THB")

    cashback_percent = models.DecimalField(max_digits=5, decimal_places=2, default=ZERO)
    cashback_earned = _money_field()
    cashback_status = models.CharField(
        max_length=20,
        choices=CashbackStatus.choices,
        default=CashbackStatus.PENDING,
    )
    vendor_commission = _money_field()

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    payment_method = models.CharField(max_length=30, blank=True)

    contact_name = models.CharField(max_length=255, blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    contact_email = models.EmailField(blank=True)
    special_requests = models.TextField(blank=True)
    source = models.CharField(
        max_length=20,
        default="web",
        help_text=_("Booking source (web, telegram, admin)."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["reference"]),
            models.Index(fields=["status"]),
            models.Index(fields=["booking_date"]),
            models.Index(fields=["bookable_type", "bookable_id"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.reference} ({self.status})"

    @property
    def guests_count(self) -> int:
        return self.adults_count + self.children_count

    @property
    def is_terminal(self) -> bool:
        return BookingStatus(self.status).is_terminal

    @staticmethod
    def generate_reference(year: int | None = None) -> str:
        year = year or timezone.localdate().year
        return f"{settings.BOOKING_REFERENCE_PREFIX}-{year}-{secrets.randbelow(999999) + 1:06d}"


class BookingAddonSelection(models.Model):
    """Add-on chosen for a booking with the price it was sold at."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="addons")
    addon = models.ForeignKey("catalog.Addon", on_delete=models.SET_NULL, null=True, related_name="+")
    name = models.CharField(max_length=255)
    price_type = models.CharField(max_length=20)
    quantity = models.PositiveSmallIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    included_in_package = models.BooleanField(default=False)

    class Meta:
        verbose_name = _("Booking add-on")
        verbose_name_plural = _("Booking add-ons")

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity}"


class BookingStatusTransition(models.Model):
    """One row of the booking state machine's transition table."""

    from_status = models.CharField(max_length=20, choices=Booking.Status.choices)
    to_status = models.CharField(max_length=20, choices=Booking.Status.choices)
    allowed_actors = models.JSONField(default=list)
    requires_reason = models.BooleanField(default=False)
    auto_actions = models.JSONField(default=list, blank=True)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Status transition")
        verbose_name_plural = _("Status transitions")
        ordering = ["from_status", "to_status"]
        constraints = [
            models.UniqueConstraint(fields=["from_status", "to_status"], name="unique_booking_status_transition"),
        ]

    def __str__(self) -> str:
        return f"{self.from_status} -> {self.to_status}"

    def clean(self) -> None:
        actors = {actor.value for actor in ActorType}
        unknown_actors = set(self.allowed_actors or []) - actors
        if unknown_actors:
            raise ValidationError(
                _("Unknown actor types: %(names)s") % {"names": ", ".join(sorted(unknown_actors))}
            )

        try:
            AutoAction.parse_all(self.auto_actions or [])
        except UnknownAutoAction as exc:
            raise ValidationError(exc.message) from exc


class BookingStatusHistory(models.Model):
    """Append-only audit trail of booking status changes."""

    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name="status_history")
    old_status = models.CharField(max_length=20, choices=Booking.Status.choices, null=True, blank=True)
    new_status = models.CharField(max_length=20, choices=Booking.Status.choices)
    actor_type = models.CharField(max_length=10, choices=[(a.value, a.value) for a in ActorType])
    actor_id = models.PositiveIntegerField(null=True, blank=True)
    reason = models.CharField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Status history entry")
        verbose_name_plural = _("Status history")
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.old_status or '-'} -> {self.new_status}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValidationError(_("Status history entries cannot be changed."))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ValidationError(_("Status history entries cannot be deleted."))
