"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """In-app notice about a booking; only ``is_read`` is writable."""

    booking_reference = serializers.ReadOnlyField(source="booking.reference")

    class Meta:
        model = Notification
        fields = ["id", "audience", "event", "booking_reference", "title", "message", "is_read", "created_at"]
        read_only_fields = [name for name in fields if name != "is_read"]
