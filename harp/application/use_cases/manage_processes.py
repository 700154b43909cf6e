"""
Manage Processes Use Case

Architectural Intent:
- Restarts or stops the application through the scripts persisted by the
  last deploy, without transferring anything
"""

from harp.application.dtos.deployment_dtos import FleetCommandRequest, FleetCommandResponse
from harp.application.orchestration.host_sessions import (
    HostSessionFactory,
    root_cause,
    run_blocking,
)
from harp.domain.entities.remote_host import RemoteHost


class ManageProcesses:
    def __init__(self, sessions: HostSessionFactory, parallel: bool = True):
        self.sessions = sessions
        self.parallel = parallel

    async def _run_script(self, name: str, request: FleetCommandRequest) -> FleetCommandResponse:
        async def run(host: RemoteHost) -> str:
            result = await run_blocking(
                host.execute, f"bash {host.layout.script_path(name)}"
            )
            return result.stripped

        outcome = await self.sessions.run_fleet(
            request.targets, run, parallel=self.parallel, ensure_layout=False
        )
        if not outcome.ok:
            return FleetCommandResponse(
                success=False,
                message=f"{outcome.failed_host}: {root_cause(outcome.error)}",
                outputs=dict(outcome.results),
                failed_host=outcome.failed_host,
            )
        return FleetCommandResponse(
            success=True,
            message=f"{name} done on {len(outcome.results)} host(s)",
            outputs=dict(outcome.results),
        )

    async def restart(self, request: FleetCommandRequest) -> FleetCommandResponse:
        return await self._run_script("restart", request)

    async def kill(self, request: FleetCommandRequest) -> FleetCommandResponse:
        return await self._run_script("kill", request)
