from dataclasses import dataclass
import re

# YY-MM-DD-HH:MM:SS, lexicographically sortable within a century
TIMESTAMP_FORMAT = "%y-%m-%d-%H:%M:%S"
_TIMESTAMP_RE = re.compile(r"^\d{2}-\d{2}-\d{2}-\d{2}:\d{2}:\d{2}$")


@dataclass(frozen=True)
class ReleaseContext:
    """
    Value Object carrying the run-wide release identifier.
    Every host in one run archives under the same timestamp.
    """
    timestamp: str
    rollback_enabled: bool = True

    def __post_init__(self) -> None:
        if not _TIMESTAMP_RE.match(self.timestamp):
            raise ValueError(f"Invalid release timestamp: {self.timestamp!r}")

    def __str__(self) -> str:
        return self.timestamp


def is_release_id(value: str) -> bool:
    return bool(_TIMESTAMP_RE.match(value))
