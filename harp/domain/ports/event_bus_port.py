"""
Event Bus Port

Architectural Intent:
- DeployFleet publishes per-host progress through this port
- Subscribers (the CLI) register for an event class; a base class receives
  every subclass
"""

from typing import Awaitable, Callable, Protocol, Sequence, runtime_checkable
from harp.domain.events.event_base import DomainEvent

EventHandler = Callable[[DomainEvent], Awaitable[None]]


@runtime_checkable
class EventBusPort(Protocol):
    async def publish(self, events: Sequence[DomainEvent]) -> None: ...

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None: ...
