"""
File Reconciliation Service

Architectural Intent:
- Read-only comparison between the locally managed files and the remote
  files/ inventory of one host
- Pure set difference over staged relative paths; never mutates either side
- A host that never received a deploy has an empty inventory, not an error
"""

from __future__ import annotations
import logging
from typing import Iterable, Mapping

from harp.domain.entities.remote_host import RemoteHost
from harp.domain.services.file_locator import LocalFile
from harp.domain.value_objects.file_diff import DiffDirection, FileDiffEntry
from harp.domain.value_objects.remote_layout import RemoteLayout

logger = logging.getLogger(__name__)


class FileReconciler:
    @staticmethod
    def inventory_command(layout: RemoteLayout) -> str:
        return (
            f'if [[ -d "{layout.app_dir}/" ]]; then\n'
            f'\tfind "{layout.files_dir}/" -type f\n'
            f"fi"
        )

    @staticmethod
    def parse_inventory(output: str, layout: RemoteLayout) -> set[str]:
        root = f"{layout.files_dir}/"
        inventory: set[str] = set()
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            if line.startswith(root):
                line = line[len(root):]
            inventory.add(line.lstrip("/"))
        return inventory

    def remote_inventory(self, host: RemoteHost) -> set[str]:
        layout = host.layout
        result = host.execute(self.inventory_command(layout))
        return self.parse_inventory(result.output, layout)

    @staticmethod
    def diff(
        local: Mapping[str, LocalFile], remote: Iterable[str]
    ) -> list[FileDiffEntry]:
        remote_set = set(remote)
        entries = [
            FileDiffEntry(
                relative_path=path,
                direction=DiffDirection.ADDED,
                size=local[path].size,
                source=str(local[path].source),
            )
            for path in sorted(set(local) - remote_set)
        ]
        entries.extend(
            FileDiffEntry(relative_path=path, direction=DiffDirection.REMOVED)
            for path in sorted(remote_set - set(local))
        )
        return entries

    @staticmethod
    def render(entries: Iterable[FileDiffEntry]) -> str:
        return "".join(f"{entry.render()}\n" for entry in entries)

    def diff_host(self, host: RemoteHost, local: Mapping[str, LocalFile]) -> str:
        entries = self.diff(local, self.remote_inventory(host))
        logger.debug("%s: %d file differences", host, len(entries))
        return self.render(entries)
