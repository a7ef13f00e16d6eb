"""
Unit of Work

Wraps one business operation in a database transaction and holds the
domain events it raised until that transaction has committed.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Transaction boundary for a booking operation

    Entering opens ``transaction.atomic()``. Leaving without an exception
    schedules the collected events for publication with
    ``transaction.on_commit``; leaving with one rolls the writes back and
    drops the events. When units of work are nested the inner one is a
    savepoint, and its events go out with the outermost commit.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking.status = BookingStatus.PAID.value
            booking.save(update_fields=["status"])
            uow.add_event(BookingStatusChanged(...))
    """

    def __init__(self, bus=None):
        self._bus = bus
        self._events: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publication()
            else:
                logger.warning(f"Rolling back unit of work ({exc_type.__name__}), dropping {len(self._events)} events")
                self._events.clear()
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    def _schedule_publication(self):
        if not self._events:
            return
        events, self._events = self._events, []
        transaction.on_commit(lambda: self._publish(events))

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.debug(f"Publishing {len(events)} events after commit")
        bus.publish(events)
