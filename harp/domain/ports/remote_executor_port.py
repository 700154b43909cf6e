"""
Remote Executor Port

Architectural Intent:
- Port interface for running shell commands on one remote host
- A connector hands out one executor per host; the host owns it exclusively
- Implemented by adapters (Fabric/SSH, local shell for tests, etc.)
"""

from abc import ABC, abstractmethod
from typing import Optional
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.remote_address import RemoteAddress


class RemoteExecutorPort(ABC):
    """
    Port interface for executing commands over an established connection.
    """

    @abstractmethod
    def run(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Runs a command in a fresh session and blocks until it completes.
        Returns the exit status and merged output; a non-zero exit is not
        an exception. Transport failures raise RemoteExecutionError.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Closes the underlying connection. Safe to call more than once.
        """
        pass


class RemoteConnectorPort(ABC):
    """
    Port interface for acquiring a connection to a host.
    """

    @abstractmethod
    def connect(self, address: RemoteAddress) -> RemoteExecutorPort:
        """
        Opens a connection and returns an executor bound to it.
        """
        pass
