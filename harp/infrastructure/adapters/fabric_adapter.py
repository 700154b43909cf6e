"""
Fabric Adapter

Architectural Intent:
- Infrastructure adapter implementing RemoteConnectorPort/RemoteExecutorPort
  via Fabric/SSH
- One Connection per host, opened explicitly by the connector and reused for
  every command; each run() opens a fresh channel on it
- Output is fully buffered; stdout and stderr are merged in the result

Security:
- SSH connections use connect_timeout, allow_agent, look_for_keys
- Local stdin is never forwarded (in_stream=False)
"""

import logging
from typing import Optional
from fabric import Connection
from invoke.exceptions import CommandTimedOut
from harp.domain.errors import RemoteExecutionError
from harp.domain.ports.remote_executor_port import (
    RemoteConnectorPort,
    RemoteExecutorPort,
)
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.remote_address import RemoteAddress
from harp.infrastructure.logging import host_logger

logger = logging.getLogger(__name__)


class FabricExecutor(RemoteExecutorPort):
    """Executor bound to one open Fabric connection."""

    def __init__(self, connection: Connection, label: str):
        self._connection = connection
        self._label = label
        self._log = host_logger(logger, label)

    @property
    def connection(self) -> Connection:
        return self._connection

    def run(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        self._log.debug("$ %s", command)
        try:
            result = self._connection.run(
                command, hide=True, warn=True, in_stream=False, timeout=timeout
            )
        except CommandTimedOut as e:
            output = (e.result.stdout or "") + (e.result.stderr or "")
            raise RemoteExecutionError(self._label, command, output=output, cause=e) from e
        except Exception as e:
            raise RemoteExecutionError(self._label, command, cause=e) from e
        return CommandResult(
            command=command,
            exit_code=result.exited,
            output=(result.stdout or "") + (result.stderr or ""),
        )

    def close(self) -> None:
        self._connection.close()


class FabricConnector(RemoteConnectorPort):
    """Opens Fabric connections authenticated through the SSH agent or keys."""

    def __init__(self, connect_timeout: int = 30):
        self.connect_timeout = connect_timeout

    def _get_connection(self, address: RemoteAddress) -> Connection:
        return Connection(
            host=address.host,
            user=address.user,
            port=address.port,
            connect_timeout=self.connect_timeout,
            connect_kwargs={
                "allow_agent": True,
                "look_for_keys": True,
            },
        )

    def connect(self, address: RemoteAddress) -> FabricExecutor:
        connection = self._get_connection(address)
        try:
            connection.open()
        except Exception as e:
            raise RemoteExecutionError(
                str(address), f"ssh {address}", cause=e
            ) from e
        host_logger(logger, address).info("Connected")
        return FabricExecutor(connection, str(address))
