"""Seeding of the default booking status transition table."""

from __future__ import annotations

import logging

from .domain.state_machine import DEFAULT_TRANSITIONS
from .models import BookingStatusTransition

logger = logging.getLogger(__name__)


def seed_status_transitions(*, reset: bool = False, using: str = "default") -> int:
    """Create missing default transitions; with ``reset`` overwrite existing rows too.

    Returns the number of rows created or updated.
    """
    touched = 0
    for row in DEFAULT_TRANSITIONS:
        defaults = {
            "allowed_actors": list(row["allowed_actors"]),
            "requires_reason": row["requires_reason"],
            "auto_actions": list(row["auto_actions"]),
            "description": row["description"],
            "is_active": True,
        }
        manager = BookingStatusTransition.objects.using(using)
        if reset:
            _, created = manager.update_or_create(
                from_status=row["from_status"], to_status=row["to_status"], defaults=defaults
            )
            touched += 1
        else:
            _, created = manager.get_or_create(
                from_status=row["from_status"], to_status=row["to_status"], defaults=defaults
            )
            touched += int(created)
    if touched:
        logger.info(f"Seeded {touched} booking status transitions")
    return touched


def seed_after_migrate(sender, using="default", **kwargs) -> None:
    seed_status_transitions(using=using)
