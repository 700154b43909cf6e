"""
Deploy Fleet Use Case

Architectural Intent:
- Orchestrates a deploy across every selected host
- Stages the payload locally once, allocates the release once, then runs a
  per-host DAG: archive -> (upload || scripts) -> deploy -> trim
- Uses DAGOrchestrator for dependency-ordered parallel execution within a
  host and HostSessionFactory for fail-fast execution across hosts

Release protocol:
- The prior release is archived before the upload overwrites the artifact,
  the build marker and files/, so releases/<id>/ always holds the previous
  deploy and a first deploy archives nothing
- Trimming old releases is non-critical: a failure is published as an event
  and logged, never failing the host
"""

import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

from harp.application.dtos.deployment_dtos import DeployFleetRequest, DeployFleetResponse
from harp.application.orchestration.dag_orchestrator import (
    DAGOrchestrator,
    WorkflowStep,
)
from harp.application.orchestration.host_sessions import (
    HostSessionFactory,
    root_cause,
    run_blocking,
)
from harp.domain.entities.application import ApplicationSpec
from harp.domain.entities.remote_host import RemoteHost
from harp.domain.errors import HarpError, RetentionError
from harp.domain.events.deploy_events import (
    HostDeployCompletedEvent,
    HostDeployFailedEvent,
    HostDeployStartedEvent,
    ReleaseTrimFailedEvent,
)
from harp.domain.events.event_base import DomainEvent
from harp.domain.ports.event_bus_port import EventBusPort
from harp.domain.ports.file_transfer_port import FileTransferPort
from harp.domain.services.release_manager import ReleaseManager
from harp.domain.services.script_composer import ScriptComposer, heredoc_write_command
from harp.domain.value_objects.release import ReleaseContext

logger = logging.getLogger(__name__)


class StagedPayloadLike(Protocol):
    build_info: str

    def sources(self) -> Sequence[Path]: ...


class Stager(Protocol):
    def stage(
        self,
        app: ApplicationSpec,
        staging_dir: Path,
        build: bool = True,
        files: bool = True,
        info: Optional[str] = None,
    ) -> StagedPayloadLike: ...


class DeployFleet:
    def __init__(
        self,
        sessions: HostSessionFactory,
        composer: ScriptComposer,
        release_manager: ReleaseManager,
        transfer: FileTransferPort,
        stager: Stager,
        staging_dir: Path,
        event_bus: Optional[EventBusPort] = None,
        parallel: bool = True,
    ):
        self.sessions = sessions
        self.composer = composer
        self.release_manager = release_manager
        self.transfer = transfer
        self.stager = stager
        self.staging_dir = Path(staging_dir)
        self.event_bus = event_bus
        self.parallel = parallel

    async def _publish(self, event: DomainEvent) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish([event])

    def _workflow(
        self,
        host: RemoteHost,
        release: ReleaseContext,
        payload: StagedPayloadLike,
        progress: bool,
    ) -> DAGOrchestrator:
        layout = host.layout

        async def archive_step(context: dict[str, Any], results: dict[str, Any]) -> bool:
            script = self.composer.save_release(host, release)
            return await run_blocking(
                self.release_manager.archive_prior_release, host, script
            )

        async def upload_step(context: dict[str, Any], results: dict[str, Any]) -> bool:
            await run_blocking(
                lambda: self.transfer.mirror(
                    payload.sources(),
                    host.address,
                    layout.app_dir,
                    delete=True,
                    progress=progress,
                )
            )
            await run_blocking(
                host.execute, heredoc_write_command(layout.build_info, payload.build_info)
            )
            return True

        async def scripts_step(context: dict[str, Any], results: dict[str, Any]) -> Any:
            bundle = await run_blocking(self.composer.compose, host)
            for name, body in bundle.persisted().items():
                await run_blocking(
                    host.execute, self.composer.save_script_command(host, name, body)
                )
            return bundle

        async def deploy_step(context: dict[str, Any], results: dict[str, Any]) -> str:
            result = await run_blocking(host.execute, results["scripts"].deploy)
            return result.output

        async def trim_step(context: dict[str, Any], results: dict[str, Any]) -> bool:
            try:
                await run_blocking(self.release_manager.trim_old_releases, host)
            except RetentionError as e:
                await self._publish(
                    ReleaseTrimFailedEvent(aggregate_id=str(host), error_message=str(e))
                )
                raise
            return True

        return DAGOrchestrator([
            WorkflowStep("archive", archive_step, depends_on=[]),
            WorkflowStep("upload", upload_step, depends_on=["archive"]),
            WorkflowStep("scripts", scripts_step, depends_on=["archive"]),
            WorkflowStep("deploy", deploy_step, depends_on=["upload", "scripts"]),
            WorkflowStep("trim", trim_step, depends_on=["deploy"], is_critical=False),
        ])

    async def execute(self, request: DeployFleetRequest) -> DeployFleetResponse:
        app = self.composer.app
        try:
            payload = await run_blocking(
                lambda: self.stager.stage(
                    app,
                    self.staging_dir,
                    build=request.build,
                    files=request.files,
                    info=request.info,
                )
            )
        except HarpError as e:
            logger.error("Staging failed: %s", e)
            return DeployFleetResponse(success=False, message=str(e))

        release = self.release_manager.allocate()

        async def deploy_host(host: RemoteHost) -> str:
            await self._publish(
                HostDeployStartedEvent(aggregate_id=str(host), release=str(release))
            )
            try:
                await self._workflow(host, release, payload, request.progress).execute({})
            except Exception as e:
                await self._publish(
                    HostDeployFailedEvent(
                        aggregate_id=str(host), error_message=str(root_cause(e))
                    )
                )
                raise
            await self._publish(
                HostDeployCompletedEvent(aggregate_id=str(host), release=str(release))
            )
            return str(release)

        outcome = await self.sessions.run_fleet(
            request.targets, deploy_host, parallel=self.parallel
        )
        if not outcome.ok:
            error = root_cause(outcome.error)
            logger.error("Deployment failed on %s: %s", outcome.failed_host, error)
            return DeployFleetResponse(
                success=False,
                message=f"{outcome.failed_host}: {error}",
                release=str(release),
                hosts_deployed=tuple(outcome.succeeded),
                failed_host=outcome.failed_host,
            )

        logger.info("Deployment successful to %d hosts.", len(outcome.results))
        return DeployFleetResponse(
            success=True,
            message=f"deployed release {release} to {len(outcome.results)} host(s)",
            release=str(release),
            hosts_deployed=tuple(outcome.succeeded),
        )
