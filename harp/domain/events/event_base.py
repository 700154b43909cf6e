"""
Domain Events

Architectural Intent:
- Immutable records of what happened to one host during a run
- aggregate_id is the host address (user@host:port)
- to_dict() flattens every field plus the event type for structured logs
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class DomainEvent:
    aggregate_id: str = ""
    occurred_at: str = field(default_factory=_utc_now, init=False, repr=False)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["event_type"] = self.event_type
        return data
