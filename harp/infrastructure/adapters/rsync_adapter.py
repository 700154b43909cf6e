"""
Rsync Adapter

Architectural Intent:
- Infrastructure adapter implementing FileTransferPort via rsync over SSH
- Mirrors local paths into a remote directory with optional --delete
- Progress mode streams rsync output to the terminal; otherwise output is
  captured and reported on failure
"""

import logging
import subprocess
from pathlib import Path
from typing import Sequence
from harp.domain.errors import TransferError
from harp.domain.ports.file_transfer_port import FileTransferPort
from harp.domain.value_objects.remote_address import RemoteAddress

logger = logging.getLogger(__name__)


class RsyncAdapter(FileTransferPort):
    def __init__(self, rsync_binary: str = "rsync"):
        self.rsync_binary = rsync_binary

    def build_command(
        self,
        sources: Sequence[Path],
        address: RemoteAddress,
        destination: str,
        delete: bool = True,
        progress: bool = False,
    ) -> list[str]:
        cmd = [self.rsync_binary, "-az"]
        if delete:
            cmd.append("--delete")
        cmd += ["-e", f"ssh -l {address.user} -p {address.port}"]
        if progress:
            cmd.append("-P")
        cmd += [str(s) for s in sources]
        cmd.append(f"{address.user}@{address.hostname}:{destination.rstrip('/')}/")
        return cmd

    def mirror(
        self,
        sources: Sequence[Path],
        address: RemoteAddress,
        destination: str,
        delete: bool = True,
        progress: bool = False,
    ) -> None:
        if not sources:
            logger.debug("Nothing to transfer to %s", address)
            return

        cmd = self.build_command(sources, address, destination, delete, progress)
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=not progress, text=True)
        except FileNotFoundError as e:
            raise TransferError(
                f"{self.rsync_binary} not found", "Install rsync locally and retry"
            ) from e

        if result.returncode != 0:
            diagnostic = (result.stderr or result.stdout or "").strip() if not progress else ""
            raise TransferError(
                f"failed to sync to {address}: rsync exited with {result.returncode}",
                diagnostic or None,
            )
