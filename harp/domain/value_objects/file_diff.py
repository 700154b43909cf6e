from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiffDirection(Enum):
    ADDED = "+"
    REMOVED = "-"


@dataclass(frozen=True)
class FileDiffEntry:
    """
    One line of a reconciliation report.
    ADDED: present locally, absent remotely.
    REMOVED: present remotely, absent from the local managed-file set.
    """
    relative_path: str
    direction: DiffDirection
    size: Optional[int] = None
    source: Optional[str] = None

    def render(self) -> str:
        if self.direction is DiffDirection.ADDED:
            return f"+ {self.size} {self.source or self.relative_path}"
        return f"- {self.relative_path}"
