"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the Harp application
- Single place where all adapters and use cases are wired together
- No adapter instantiation should occur outside this module (except CLI)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from a HarpConfig
- One ReleaseManager per container, so one release id per run
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from harp.application.orchestration.host_sessions import HostSessionFactory
from harp.application.use_cases.deploy_fleet import DeployFleet
from harp.application.use_cases.diff_files import DiffFiles
from harp.application.use_cases.inspect_fleet import InspectFleet
from harp.application.use_cases.manage_processes import ManageProcesses
from harp.application.use_cases.rollback_deployment import RollbackDeployment
from harp.domain.entities.application import ApplicationSpec
from harp.domain.ports.file_transfer_port import FileTransferPort
from harp.domain.ports.remote_executor_port import RemoteConnectorPort
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.services.file_reconciler import FileReconciler
from harp.domain.services.release_manager import ReleaseManager, RetentionPolicy
from harp.domain.services.script_composer import ScriptComposer
from harp.infrastructure.adapters.build_adapter import CommandBuildAdapter
from harp.infrastructure.adapters.fabric_adapter import FabricConnector
from harp.infrastructure.adapters.local_stager import LocalStager
from harp.infrastructure.adapters.rsync_adapter import RsyncAdapter
from harp.infrastructure.adapters.shell_probe import ShellEnvironmentProbe
from harp.infrastructure.config import HarpConfig
from harp.infrastructure.event_bus import EventBus


@dataclass
class HarpContainer:
    """DI container holding all wired dependencies."""

    config: HarpConfig
    app: ApplicationSpec
    connector: RemoteConnectorPort
    transfer: FileTransferPort
    event_bus: EventBus
    sessions: HostSessionFactory
    composer: ScriptComposer
    release_manager: ReleaseManager
    deploy_fleet: DeployFleet
    rollback: RollbackDeployment
    processes: ManageProcesses
    inspect: InspectFleet
    diff_files: DiffFiles


def create_container(
    config: HarpConfig,
    connector: Optional[RemoteConnectorPort] = None,
    transfer: Optional[FileTransferPort] = None,
    parallel: Optional[bool] = None,
) -> HarpContainer:
    """Create and wire all dependencies."""
    base_dir = Path(config.base_dir)
    app = config.app.to_spec(base_dir)
    parallel = config.ssh.parallel if parallel is None else parallel

    connector = connector or FabricConnector(connect_timeout=config.ssh.connect_timeout)
    transfer = transfer or RsyncAdapter()
    event_bus = EventBus()

    locator = ManagedFileLocator(config.build.resolved_search_paths())
    composer = ScriptComposer(app, locator, runtime_root_var=config.ssh.runtime_root_var)
    release_manager = ReleaseManager(
        policy=RetentionPolicy(
            keep=config.release.keep, max_age_days=config.release.max_age_days
        ),
        rollback_enabled=not config.release.no_rollback,
    )
    sessions = HostSessionFactory(
        connector,
        app,
        probe_factory=ShellEnvironmentProbe,
        runtime_root_var=config.ssh.runtime_root_var,
        command_timeout=config.ssh.command_timeout or None,
    )
    builder = CommandBuildAdapter(command=config.build.command, env=config.build.env)
    stager = LocalStager(locator, builder)
    staging_dir = Path(config.build.staging_dir)
    if not staging_dir.is_absolute():
        staging_dir = base_dir / staging_dir

    deploy_fleet = DeployFleet(
        sessions,
        composer,
        release_manager,
        transfer,
        stager,
        staging_dir,
        event_bus=event_bus,
        parallel=parallel,
    )

    return HarpContainer(
        config=config,
        app=app,
        connector=connector,
        transfer=transfer,
        event_bus=event_bus,
        sessions=sessions,
        composer=composer,
        release_manager=release_manager,
        deploy_fleet=deploy_fleet,
        rollback=RollbackDeployment(sessions, parallel=parallel),
        processes=ManageProcesses(sessions, parallel=parallel),
        inspect=InspectFleet(sessions, parallel=parallel),
        diff_files=DiffFiles(sessions, app, locator, FileReconciler(), parallel=parallel),
    )
