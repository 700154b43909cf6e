"""
Deploy Events

Published by DeployFleet for each host; aggregate_id is the host address.
"""

from dataclasses import dataclass
from harp.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class HostDeployStartedEvent(DomainEvent):
    release: str = ""


@dataclass(frozen=True)
class HostDeployCompletedEvent(DomainEvent):
    release: str = ""


@dataclass(frozen=True)
class HostDeployFailedEvent(DomainEvent):
    error_message: str = ""


@dataclass(frozen=True)
class ReleaseTrimFailedEvent(DomainEvent):
    """Old releases stayed on the host; the deploy itself succeeded."""
    error_message: str = ""
