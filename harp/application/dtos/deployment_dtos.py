"""
Deployment DTOs

Architectural Intent:
- Requests and responses of the fleet use cases (deploy, rollback,
  restart/kill, info, diff)
- Requests validate target selection and rollback versions before any
  host is contacted
- Responses name the failing host and the hosts already done
"""

from dataclasses import dataclass, field
from typing import Optional

from harp.domain.value_objects.release import is_release_id
from harp.domain.value_objects.remote_address import HostTarget


@dataclass(frozen=True)
class DeployFleetRequest:
    targets: list[HostTarget]
    build: bool = True
    files: bool = True
    progress: bool = False
    info: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.targets:
            raise ValueError("targets cannot be empty")
        if not self.build and not self.files:
            raise ValueError("nothing to deploy: both artifact and files excluded")


@dataclass(frozen=True)
class DeployFleetResponse:
    success: bool
    message: str
    release: str = ""
    hosts_deployed: tuple[str, ...] = ()
    failed_host: Optional[str] = None


@dataclass(frozen=True)
class RollbackRequest:
    targets: list[HostTarget]
    version: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.targets:
            raise ValueError("targets cannot be empty")
        if self.version is not None and not is_release_id(self.version):
            raise ValueError(f"invalid release identifier: {self.version!r}")


@dataclass(frozen=True)
class RollbackResponse:
    success: bool
    message: str
    listings: dict[str, list[str]] = field(default_factory=dict)
    hosts_rolled_back: tuple[str, ...] = ()
    failed_host: Optional[str] = None


@dataclass(frozen=True)
class FleetCommandRequest:
    targets: list[HostTarget]

    def __post_init__(self) -> None:
        if not self.targets:
            raise ValueError("targets cannot be empty")


@dataclass(frozen=True)
class FleetCommandResponse:
    """Outcome of restart, kill, info and diff; outputs keyed by host."""
    success: bool
    message: str
    outputs: dict[str, str] = field(default_factory=dict)
    failed_host: Optional[str] = None
