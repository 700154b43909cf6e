"""
Event Bus Infrastructure

Architectural Intent:
- In-memory implementation of EventBusPort for a single CLI run
- Handlers are awaited in subscription order
- A failing handler is logged against the event's host and never aborts a
  deploy
"""

import logging
from typing import Sequence
from harp.domain.events.event_base import DomainEvent
from harp.domain.ports.event_bus_port import EventHandler

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._subscriptions: list[tuple[type[DomainEvent], EventHandler]] = []

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._subscriptions.append((event_type, handler))

    def handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        return [h for event_type, h in self._subscriptions if isinstance(event, event_type)]

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            host = {"host": event.aggregate_id} if event.aggregate_id else None
            logger.debug("Publishing %s", event.event_type, extra=host)
            for handler in self.handlers_for(event):
                try:
                    await handler(event)
                except Exception as e:
                    logger.warning(
                        "Handler %r failed for %s: %s",
                        handler, event.event_type, e,
                        extra=host,
                    )
