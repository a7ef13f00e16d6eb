"""User domain models for the booking platform.

Customers log in by email and carry the loyalty state the booking core
reads and adjusts: the cashback balance, the loyalty tier and the
lifetime counters that drive tier progression. Every balance movement is
mirrored by an append-only ``CashbackTransaction`` ledger row.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


class CustomUserManager(BaseUserManager):
    """User manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required to create a user.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.GUEST)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip spaces and dashes so phones are stored uniformly."""
        return phone.replace(" ", "").replace("-", "")


class LoyaltyTier(models.Model):
    """Loyalty level granting a cashback rate and an extra booking discount."""

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=50, unique=True)
    min_bookings = models.PositiveIntegerField(default=0)
    min_spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cashback_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("5.00"),
        help_text=_("Share of the paid total returned as cashback."),
    )
    extra_discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Discount applied to the booking subtotal."),
    )
    sort_order = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Loyalty tier")
        verbose_name_plural = _("Loyalty tiers")
        ordering = ["sort_order"]

    def __str__(self) -> str:
        return f"{self.name} ({self.cashback_percent}% cashback)"


class CustomUser(AbstractUser):
    """Platform user with a role, a cashback wallet and loyalty counters."""

    class RoleChoices(models.TextChoices):
        GUEST = "guest", _("Guest")
        VENDOR = "vendor", _("Vendor")
        ADMIN = "admin", _("Administrator")

    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
        help_text=_("Optional, used in notifications."),
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.GUEST,
    )
    telegram_id = models.BigIntegerField(_("Telegram ID"), unique=True, null=True, blank=True)
    cashback_balance = models.DecimalField(
        _("Cashback balance"),
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    loyalty_tier = models.ForeignKey(
        LoyaltyTier,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="members",
    )
    total_bookings = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    referred_by = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referrals",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def is_vendor(self) -> bool:
        return self.role == self.RoleChoices.VENDOR

    def is_platform_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN or self.is_staff or self.is_superuser


class CashbackTransaction(models.Model):
    """Ledger entry for a single cashback balance movement."""

    class Type(models.TextChoices):
        EARNED = "earned", _("Earned")
        USED = "used", _("Used")
        REFUND = "refund", _("Refund")
        REVERSAL = "reversal", _("Reversal")
        REFERRAL = "referral", _("Referral bonus")

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="cashback_transactions",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="cashback_transactions",
    )
    referred_user = models.ForeignKey(
        CustomUser,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
        help_text=_("Referred customer whose first booking earned a referral bonus."),
    )
    type = models.CharField(max_length=20, choices=Type.choices)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text=_("Signed amount: positive credits, negative debits."),
    )
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Cashback transaction")
        verbose_name_plural = _("Cashback transactions")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"]),
        ]
        constraints = [
            # A referred user triggers at most one referral bonus.
            models.UniqueConstraint(
                fields=["referred_user"],
                condition=models.Q(type="referral"),
                name="unique_referral_bonus_per_referred_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()} {self.amount} for {self.user_id}"


User = CustomUser
