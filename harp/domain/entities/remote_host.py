"""
Remote Host Entity

Architectural Intent:
- One deployment target for the duration of a run
- Owns its executor exclusively; the executor is acquired by a connector
  and handed in, never opened implicitly
- Commands on one host are serialized; hosts themselves may run in parallel
- Home and runtime root resolve through a RemoteEnvironmentProbe with an
  explicit, logged fallback order
"""

from __future__ import annotations
import logging
import threading
from typing import Optional

from harp.domain.entities.application import ApplicationSpec
from harp.domain.errors import RemoteExecutionError
from harp.domain.ports.environment_probe_port import RemoteEnvironmentProbe
from harp.domain.ports.remote_executor_port import RemoteExecutorPort
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.remote_address import HostTarget, RemoteAddress
from harp.domain.value_objects.remote_layout import RemoteLayout

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_ROOT_VAR = "GOPATH"


class RemoteHost:
    __slots__ = (
        "_address",
        "_executor",
        "_app",
        "_set_name",
        "_home",
        "_runtime_root",
        "_log_dir",
        "_envs",
        "_command_timeout",
        "_lock",
        "_closed",
    )

    def __init__(
        self,
        address: RemoteAddress,
        executor: RemoteExecutorPort,
        app: ApplicationSpec,
        set_name: str = "",
        home: str = "",
        runtime_root: str = "",
        log_dir: str = "",
        envs: Optional[dict[str, str]] = None,
        command_timeout: Optional[float] = None,
    ):
        self._address = address
        self._executor = executor
        self._app = app
        self._set_name = set_name
        self._home = home
        self._runtime_root = runtime_root
        self._log_dir = log_dir
        self._envs = dict(envs or {})
        self._command_timeout = command_timeout
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_target(
        cls,
        target: HostTarget,
        executor: RemoteExecutorPort,
        app: ApplicationSpec,
        command_timeout: Optional[float] = None,
    ) -> "RemoteHost":
        return cls(
            address=target.address,
            executor=executor,
            app=app,
            set_name=target.set_name,
            home=target.home,
            runtime_root=target.runtime_root,
            log_dir=target.log_dir,
            envs=target.envs,
            command_timeout=command_timeout,
        )

    @property
    def address(self) -> RemoteAddress:
        return self._address

    @property
    def app(self) -> ApplicationSpec:
        return self._app

    @property
    def set_name(self) -> str:
        return self._set_name

    @property
    def home(self) -> str:
        return self._home

    @property
    def runtime_root(self) -> str:
        return self._runtime_root

    @property
    def envs(self) -> dict[str, str]:
        return dict(self._envs)

    @property
    def layout(self) -> RemoteLayout:
        return RemoteLayout(
            home=self._home,
            app_name=self._app.name,
            log_dir_override=self._log_dir or None,
        )

    def resolve_paths(
        self,
        probe: RemoteEnvironmentProbe,
        runtime_root_var: str = DEFAULT_RUNTIME_ROOT_VAR,
    ) -> list[str]:
        """
        Fills in home and runtime root when the configuration left them empty.

        Order: $HOME, then the remote working directory for home;
        $<runtime_root_var>, then home for the runtime root. Probe failures
        are logged and returned as warnings, never raised.
        """
        warnings: list[str] = []

        def _note(result_diagnostic: str) -> None:
            if result_diagnostic:
                logger.warning("%s: %s", self, result_diagnostic)
                warnings.append(result_diagnostic)

        if not self._home:
            result = probe.env("HOME")
            _note(result.diagnostic)
            self._home = (result.value or "").strip()
        if not self._home:
            result = probe.working_directory()
            _note(result.diagnostic)
            self._home = (result.value or "").strip()
        if not self._home:
            _note("home directory unresolved; remote paths are relative to the login dir")

        if not self._runtime_root:
            result = probe.env(runtime_root_var)
            _note(result.diagnostic)
            self._runtime_root = (result.value or "").strip()
        if not self._runtime_root:
            self._runtime_root = self._home

        logger.debug(
            "%s: home=%s runtime_root=%s", self, self._home, self._runtime_root
        )
        return warnings

    def execute(self, command: str, warn: bool = False) -> CommandResult:
        """
        Runs a command on this host and returns its merged output.
        Raises RemoteExecutionError on a non-zero exit unless warn is set.
        """
        if self._closed:
            raise RemoteExecutionError(
                str(self), command, cause=RuntimeError("connection already closed")
            )
        with self._lock:
            try:
                result = self._executor.run(command, timeout=self._command_timeout)
            except RemoteExecutionError:
                raise
            except Exception as e:
                raise RemoteExecutionError(str(self), command, cause=e) from e

        if not result.ok and not warn:
            raise RemoteExecutionError(
                str(self), command, output=result.output, exit_code=result.exit_code
            )
        return result

    def ensure_base_layout(self) -> None:
        self.execute(f"mkdir -p {self.layout.files_dir}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._executor.close()
        except Exception as e:
            logger.warning("Failed to close connection to %s: %s", self, e)

    def __str__(self) -> str:
        return str(self._address)

    def __repr__(self) -> str:
        return (
            f"RemoteHost(address={self._address}, set={self._set_name!r}, "
            f"home={self._home!r}, runtime_root={self._runtime_root!r})"
        )
