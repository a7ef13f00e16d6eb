"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created

    Triggers:
    - Notify the admins about a new request
    - Notify the vendor owning the item
    """
    booking_id: int
    reference: str
    guest_id: int
    vendor_id: Optional[int]
    total_price: Decimal
    currency: str = 'THB'


@dataclass(kw_only=True)
class BookingStatusChanged(DomainEvent):
    """
    Event: A booking moved from one status to another

    Published for every successful, non-idempotent transition.
    """
    booking_id: int
    reference: str
    old_status: Optional[str]
    new_status: str
    actor_type: str
    actor_id: Optional[int] = None
    reason: str = ''


@dataclass(kw_only=True)
class NotificationRequested(DomainEvent):
    """
    Event: A transition declared a notify_* auto-action

    Delivery is best-effort and happens after commit, so a failing
    channel never undoes the transition.
    """
    booking_id: int
    reference: str
    audience: str
    event: str
    payload: dict = field(default_factory=dict)
