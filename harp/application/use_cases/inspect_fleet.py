"""
Inspect Fleet Use Case

Reads the build marker of every selected host.
"""

from harp.application.dtos.deployment_dtos import FleetCommandRequest, FleetCommandResponse
from harp.application.orchestration.host_sessions import (
    HostSessionFactory,
    root_cause,
    run_blocking,
)
from harp.domain.entities.remote_host import RemoteHost

NO_BUILD_INFO = "(no build info)"


class InspectFleet:
    def __init__(self, sessions: HostSessionFactory, parallel: bool = True):
        self.sessions = sessions
        self.parallel = parallel

    async def build_info(self, request: FleetCommandRequest) -> FleetCommandResponse:
        async def read_marker(host: RemoteHost) -> str:
            result = await run_blocking(
                lambda: host.execute(f"cat {host.layout.build_info}", warn=True)
            )
            return result.stripped if result.ok else NO_BUILD_INFO

        outcome = await self.sessions.run_fleet(
            request.targets, read_marker, parallel=self.parallel, ensure_layout=False
        )
        if not outcome.ok:
            return FleetCommandResponse(
                success=False,
                message=f"{outcome.failed_host}: {root_cause(outcome.error)}",
                outputs=dict(outcome.results),
                failed_host=outcome.failed_host,
            )
        return FleetCommandResponse(success=True, message="", outputs=dict(outcome.results))
