"""
File Transfer Port

Architectural Intent:
- Port interface for the bulk mirror of local paths to a remote directory
- Mirror semantics: optional deletion of extraneous remote files
- Implemented by RsyncAdapter
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence
from harp.domain.value_objects.remote_address import RemoteAddress


class FileTransferPort(ABC):
    """
    Port interface for mirroring local paths onto a host.
    """

    @abstractmethod
    def mirror(
        self,
        sources: Sequence[Path],
        address: RemoteAddress,
        destination: str,
        delete: bool = True,
        progress: bool = False,
    ) -> None:
        """
        Mirrors every source into the remote destination directory.
        Raises TransferError when the transfer fails.
        """
        pass
