"""
Domain base classes

ValueObject marks immutable, identity-free types such as Money.
DomainEvent is the base of every event booking code hands to the unit
of work.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """Frozen dataclass compared field by field."""


@dataclass(kw_only=True)
class DomainEvent:
    """
    Something that already happened to an aggregate

    ``aggregate_id`` is the primary key of the row the event is about
    (a booking id for every event raised today).
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: int | None = None
