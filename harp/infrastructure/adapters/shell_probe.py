"""
Shell Environment Probe

Architectural Intent:
- Implements RemoteEnvironmentProbe with one `echo`/`pwd` command per lookup
- Never raises: failures come back as a diagnostic with no value
"""

import re
from harp.domain.entities.remote_host import RemoteHost
from harp.domain.errors import RemoteExecutionError
from harp.domain.ports.environment_probe_port import ProbeResult

_VAR_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ShellEnvironmentProbe:
    def __init__(self, host: RemoteHost):
        self._host = host

    def _probe(self, command: str) -> ProbeResult:
        try:
            result = self._host.execute(command, warn=True)
        except RemoteExecutionError as e:
            return ProbeResult(None, f"{command} on {self._host} error: {e.cause}")
        if not result.ok:
            return ProbeResult(
                None,
                f"{command} on {self._host} error: exit status {result.exit_code}: "
                f"{result.stripped}",
            )
        return ProbeResult(result.stripped or None)

    def env(self, name: str) -> ProbeResult:
        if not _VAR_NAME_RE.match(name):
            return ProbeResult(None, f"invalid environment variable name: {name!r}")
        return self._probe(f"echo ${name}")

    def working_directory(self) -> ProbeResult:
        return self._probe("pwd")
