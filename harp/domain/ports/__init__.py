"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from harp.domain.ports.remote_executor_port import (
    RemoteExecutorPort,
    RemoteConnectorPort,
)
from harp.domain.ports.environment_probe_port import (
    RemoteEnvironmentProbe,
    ProbeResult,
)
from harp.domain.ports.file_transfer_port import FileTransferPort
from harp.domain.ports.artifact_builder_port import ArtifactBuilderPort
from harp.domain.ports.event_bus_port import EventBusPort

__all__ = [
    "RemoteExecutorPort",
    "RemoteConnectorPort",
    "RemoteEnvironmentProbe",
    "ProbeResult",
    "FileTransferPort",
    "ArtifactBuilderPort",
    "EventBusPort",
]
