"""Catalog models: vendors, vessels, tours, add-ons and packages."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.users.models import PHONE_VALIDATOR


class AppliesTo(models.TextChoices):
    ALL = "all", _("All items")
    VESSELS = "vessels", _("Vessels")
    TOURS = "tours", _("Tours")


class Vendor(models.Model):
    """Charter company or tour operator that fulfils bookings."""

    name = models.CharField(max_length=255)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="vendor_profile",
        null=True,
        blank=True,
    )
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True, validators=[PHONE_VALIDATOR])
    telegram_chat_id = models.BigIntegerField(null=True, blank=True)
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("15.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_("Platform commission in percent of the booking total."),
    )
    total_bookings = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vendor")
        verbose_name_plural = _("Vendors")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Vessel(models.Model):
    """Boat offered for hourly or full-day charter."""

    class Type(models.TextChoices):
        YACHT = "yacht", _("Yacht")
        CATAMARAN = "catamaran", _("Catamaran")
        SPEEDBOAT = "speedboat", _("Speedboat")
        SAILBOAT = "sailboat", _("Sailboat")

    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.SET_NULL,
        related_name="vessels",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.YACHT)
    capacity = models.PositiveSmallIntegerField(default=10)
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vessel")
        verbose_name_plural = _("Vessels")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_type_display()})"


class Tour(models.Model):
    """Scheduled tour priced per adult and child."""

    class Category(models.TextChoices):
        ISLANDS = "islands", _("Island hopping")
        SNORKELING = "snorkeling", _("Snorkeling")
        FISHING = "fishing", _("Fishing")
        SUNSET = "sunset", _("Sunset cruise")
        ADVENTURE = "adventure", _("Adventure")

    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.SET_NULL,
        related_name="tours",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.ISLANDS)
    duration_hours = models.PositiveSmallIntegerField(null=True, blank=True)
    price_adult = models.DecimalField(max_digits=10, decimal_places=2)
    price_child = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    pickup_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    max_participants = models.PositiveSmallIntegerField(default=30)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tour")
        verbose_name_plural = _("Tours")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Addon(models.Model):
    """Optional extra sold alongside a booking."""

    class PriceType(models.TextChoices):
        PER_PERSON = "per_person", _("Per person")
        PER_HOUR = "per_hour", _("Per hour")
        PER_ITEM = "per_item", _("Per item")
        FIXED = "fixed", _("Fixed")

    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    price_type = models.CharField(max_length=20, choices=PriceType.choices, default=PriceType.FIXED)
    applies_to = models.CharField(max_length=10, choices=AppliesTo.choices, default=AppliesTo.ALL)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Add-on")
        verbose_name_plural = _("Add-ons")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.price} / {self.get_price_type_display()})"


class Package(models.Model):
    """Bundle of a base item and included add-ons sold at a discount."""

    class BaseType(models.TextChoices):
        VESSEL = "vessel", _("Vessel")
        TOUR = "tour", _("Tour")

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    base_type = models.CharField(max_length=10, choices=BaseType.choices)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Used when the base item has no price of its own."),
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    included_addons = models.ManyToManyField(Addon, through="PackageAddon", related_name="packages")
    min_guests = models.PositiveSmallIntegerField(default=1)
    min_duration_hours = models.PositiveSmallIntegerField(default=4)
    bookings_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Package")
        verbose_name_plural = _("Packages")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} (-{self.discount_percent}%)"


class PackageAddon(models.Model):
    package = models.ForeignKey(Package, on_delete=models.CASCADE, related_name="package_addons")
    addon = models.ForeignKey(Addon, on_delete=models.CASCADE, related_name="+")
    quantity = models.PositiveSmallIntegerField(default=1)

    class Meta:
        unique_together = ("package", "addon")

    def __str__(self) -> str:
        return f"{self.addon_id} x{self.quantity} in {self.package_id}"
