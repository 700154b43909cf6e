"""
Rollback Deployment Use Case

Architectural Intent:
- Runs the persisted rollback script on every selected host
- Without a version the script prints the available releases and exits
  non-zero; the listings are collected and the run reports failure
"""

import shlex
from typing import Any

from harp.application.dtos.deployment_dtos import RollbackRequest, RollbackResponse
from harp.application.orchestration.host_sessions import (
    HostSessionFactory,
    root_cause,
    run_blocking,
)
from harp.domain.entities.remote_host import RemoteHost
from harp.domain.value_objects.release import is_release_id


def _parse_listing(output: str) -> list[str]:
    return sorted(line.strip() for line in output.splitlines() if is_release_id(line.strip()))


class RollbackDeployment:
    def __init__(self, sessions: HostSessionFactory, parallel: bool = True):
        self.sessions = sessions
        self.parallel = parallel

    @staticmethod
    def command(host: RemoteHost, version: str = "") -> str:
        command = f"bash {host.layout.script_path('rollback')}"
        if version:
            command += f" {shlex.quote(version)}"
        return command

    async def execute(self, request: RollbackRequest) -> RollbackResponse:
        async def rollback_host(host: RemoteHost) -> Any:
            if request.version is None:
                result = await run_blocking(
                    lambda: host.execute(self.command(host), warn=True)
                )
                return _parse_listing(result.output)
            await run_blocking(host.execute, self.command(host, request.version))
            return request.version

        outcome = await self.sessions.run_fleet(
            request.targets, rollback_host, parallel=self.parallel, ensure_layout=False
        )
        if not outcome.ok:
            return RollbackResponse(
                success=False,
                message=f"{outcome.failed_host}: {root_cause(outcome.error)}",
                hosts_rolled_back=tuple(outcome.succeeded)
                if request.version is not None
                else (),
                failed_host=outcome.failed_host,
            )

        if request.version is None:
            return RollbackResponse(
                success=False,
                message="please specify a version to roll back to",
                listings=dict(outcome.results),
            )
        return RollbackResponse(
            success=True,
            message=f"rolled back {len(outcome.results)} host(s) to {request.version}",
            hosts_rolled_back=tuple(outcome.succeeded),
        )
