"""
Diff Files Use Case

Architectural Intent:
- Read-only diagnostic comparing the local managed files with each host's
  remote files/ inventory
- The local index is built once and shared by every host
"""

import logging

from harp.application.dtos.deployment_dtos import FleetCommandRequest, FleetCommandResponse
from harp.application.orchestration.host_sessions import (
    HostSessionFactory,
    root_cause,
    run_blocking,
)
from harp.domain.entities.application import ApplicationSpec
from harp.domain.entities.remote_host import RemoteHost
from harp.domain.errors import HarpError
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.services.file_reconciler import FileReconciler

logger = logging.getLogger(__name__)


class DiffFiles:
    def __init__(
        self,
        sessions: HostSessionFactory,
        app: ApplicationSpec,
        locator: ManagedFileLocator,
        reconciler: FileReconciler,
        parallel: bool = True,
    ):
        self.sessions = sessions
        self.app = app
        self.locator = locator
        self.reconciler = reconciler
        self.parallel = parallel

    async def execute(self, request: FleetCommandRequest) -> FleetCommandResponse:
        try:
            local = self.locator.local_index(self.app.files)
        except HarpError as e:
            return FleetCommandResponse(success=False, message=str(e))

        async def diff_host(host: RemoteHost) -> str:
            return await run_blocking(self.reconciler.diff_host, host, local)

        outcome = await self.sessions.run_fleet(
            request.targets, diff_host, parallel=self.parallel, ensure_layout=False
        )
        if not outcome.ok:
            return FleetCommandResponse(
                success=False,
                message=f"{outcome.failed_host}: {root_cause(outcome.error)}",
                outputs=dict(outcome.results),
                failed_host=outcome.failed_host,
            )
        return FleetCommandResponse(success=True, message="", outputs=dict(outcome.results))
