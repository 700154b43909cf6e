"""
Domain Events Package

Architectural Intent:
- Contains domain events published during a fleet deploy
- Events are the primary mechanism for progress reporting
"""

from harp.domain.events.event_base import DomainEvent
from harp.domain.events.deploy_events import (
    HostDeployStartedEvent,
    HostDeployCompletedEvent,
    HostDeployFailedEvent,
    ReleaseTrimFailedEvent,
)

__all__ = [
    "DomainEvent",
    "HostDeployStartedEvent",
    "HostDeployCompletedEvent",
    "HostDeployFailedEvent",
    "ReleaseTrimFailedEvent",
]
