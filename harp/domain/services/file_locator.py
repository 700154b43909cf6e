"""
Managed File Locator

Architectural Intent:
- Resolves managed file entries against local search paths, in priority order
- First search path containing the entry wins; none is a configuration error
- Produces the local inventory used by staging and by file reconciliation
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from harp.domain.entities.application import ManagedFile
from harp.domain.errors import ManagedFileNotFoundError


@dataclass(frozen=True)
class LocatedFile:
    managed: ManagedFile
    source: Path
    is_dir: bool


@dataclass(frozen=True)
class LocalFile:
    """One regular file as it will appear under the remote files/ root."""
    relative_path: str
    source: Path
    size: int


class ManagedFileLocator:
    def __init__(self, search_paths: Sequence[Path | str]):
        self.search_paths = [Path(p) for p in search_paths]

    def locate(self, managed: ManagedFile) -> LocatedFile:
        for root in self.search_paths:
            candidate = root / managed.path
            if candidate.exists():
                return LocatedFile(
                    managed=managed, source=candidate, is_dir=candidate.is_dir()
                )
        raise ManagedFileNotFoundError(
            managed.path, [str(p) for p in self.search_paths]
        )

    def locate_all(self, files: Iterable[ManagedFile]) -> list[LocatedFile]:
        return [self.locate(f) for f in files]

    def local_index(self, files: Iterable[ManagedFile]) -> dict[str, LocalFile]:
        """Maps each staged relative path to its local file."""
        index: dict[str, LocalFile] = {}
        for located in self.locate_all(files):
            name = located.managed.staged_name
            if not located.is_dir:
                index[name] = LocalFile(
                    name, located.source, located.source.stat().st_size
                )
                continue
            for dirpath, _, filenames in os.walk(located.source):
                for filename in filenames:
                    path = Path(dirpath) / filename
                    if not path.is_file():
                        continue
                    rel = path.relative_to(located.source).as_posix()
                    key = f"{name}/{rel}"
                    index[key] = LocalFile(key, path, path.stat().st_size)
        return index
