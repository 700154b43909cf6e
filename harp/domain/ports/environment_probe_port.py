"""
Remote Environment Probe Port

Architectural Intent:
- Resolves remote environment facts (env vars, working directory)
- Returns an optional value plus a diagnostic instead of raising, so the
  fallback order in RemoteHost.resolve_paths stays explicit
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ProbeResult:
    value: Optional[str] = None
    diagnostic: str = ""

    @property
    def found(self) -> bool:
        return bool(self.value)


@runtime_checkable
class RemoteEnvironmentProbe(Protocol):
    def env(self, name: str) -> ProbeResult: ...

    def working_directory(self) -> ProbeResult: ...
