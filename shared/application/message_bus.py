"""
Message Bus

In-process publish/subscribe for domain events. Booking code raises
events through the unit of work; other apps (notifications today)
subscribe to the event types they care about when Django starts.
"""

from collections import defaultdict
from typing import Callable, DefaultDict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[DomainEvent], None]


class MessageBus:
    """
    Routes each published event to every subscriber of its exact type

    Subscribers run one after another in registration order. A failing
    subscriber is logged and skipped; the remaining subscribers still
    receive the event.
    """

    def __init__(self):
        self._subscribers: DefaultDict[Type[DomainEvent], List[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], subscriber: Subscriber):
        """Attach ``subscriber`` to ``event_type``; repeated calls are ignored."""
        subscribers = self._subscribers[event_type]
        if subscriber not in subscribers:
            subscribers.append(subscriber)

    def subscribers_for(self, event_type: Type[DomainEvent]) -> List[Subscriber]:
        return list(self._subscribers.get(event_type, ()))

    def publish(self, events: Iterable[DomainEvent]):
        for event in events:
            name = type(event).__name__
            subscribers = self.subscribers_for(type(event))
            if not subscribers:
                logger.debug(f"No subscribers for {name} (aggregate {event.aggregate_id})")
                continue

            logger.info(f"Delivering {name} (aggregate {event.aggregate_id}) to {len(subscribers)} subscriber(s)")
            for subscriber in subscribers:
                try:
                    subscriber(event)
                except Exception as e:
                    logger.error(
                        f"Subscriber {getattr(subscriber, '__name__', subscriber)} failed on {name}: {e}",
                        exc_info=True,
                    )


# Process-wide bus; apps subscribe in AppConfig.ready()
message_bus = MessageBus()
