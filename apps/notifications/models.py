"""Notification model.

In-app notification delivered to a guest, a vendor account or a
platform admin about a booking event. Each notification can be marked
as read.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Audience(models.TextChoices):
        USER = "user", _("Guest")
        ADMIN = "admin", _("Admin")
        VENDOR = "vendor", _("Vendor")

    user = models.ForeignKey(
        "users.CustomUser", on_delete=models.CASCADE, related_name="notifications"
    )
    audience = models.CharField(max_length=10, choices=Audience.choices, default=Audience.USER)
    event = models.CharField(max_length=50)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        related_name="notifications",
        null=True,
        blank=True,
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "is_read"])]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
