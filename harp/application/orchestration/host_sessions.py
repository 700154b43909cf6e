"""
Host Sessions

Architectural Intent:
- Acquires the connection for a host explicitly through a RemoteConnectorPort
  and hands it to a RemoteHost; nothing connects lazily
- Resolves home and runtime root once per host, then ensures the base layout
- Runs an action across the fleet, in parallel or serially, stopping the
  whole run at the first failure

Concurrency:
- Each host owns its connection; blocking calls run in the default executor
- In parallel mode the first failing host cancels every pending host task.
  Hosts that already finished are not undone.
"""

from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence

from harp.application.orchestration.dag_orchestrator import OrchestrationError
from harp.domain.entities.application import ApplicationSpec
from harp.domain.entities.remote_host import DEFAULT_RUNTIME_ROOT_VAR, RemoteHost
from harp.domain.ports.environment_probe_port import RemoteEnvironmentProbe
from harp.domain.ports.remote_executor_port import RemoteConnectorPort
from harp.domain.value_objects.remote_address import HostTarget

logger = logging.getLogger(__name__)

HostAction = Callable[[RemoteHost], Awaitable[Any]]


@dataclass
class FleetOutcome:
    """Per-host results of one fleet run, in target order."""
    results: dict[str, Any] = field(default_factory=dict)
    failed_host: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def succeeded(self) -> list[str]:
        return list(self.results)


async def run_blocking(fn: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, fn, *args)


class HostSessionFactory:
    def __init__(
        self,
        connector: RemoteConnectorPort,
        app: ApplicationSpec,
        probe_factory: Callable[[RemoteHost], RemoteEnvironmentProbe],
        runtime_root_var: str = DEFAULT_RUNTIME_ROOT_VAR,
        command_timeout: Optional[float] = None,
    ):
        self.connector = connector
        self.app = app
        self.probe_factory = probe_factory
        self.runtime_root_var = runtime_root_var
        self.command_timeout = command_timeout

    async def open(self, target: HostTarget, ensure_layout: bool = True) -> RemoteHost:
        executor = await run_blocking(self.connector.connect, target.address)
        host = RemoteHost.from_target(
            target, executor, self.app, command_timeout=self.command_timeout
        )
        try:
            await run_blocking(
                host.resolve_paths, self.probe_factory(host), self.runtime_root_var
            )
            if ensure_layout:
                await run_blocking(host.ensure_base_layout)
        except BaseException:
            host.close()
            raise
        logger.info("Connected to %s (home=%s)", host, host.home)
        return host

    @asynccontextmanager
    async def session(
        self, target: HostTarget, ensure_layout: bool = True
    ) -> AsyncIterator[RemoteHost]:
        host = await self.open(target, ensure_layout=ensure_layout)
        try:
            yield host
        finally:
            host.close()

    async def _run_one(
        self, target: HostTarget, action: HostAction, ensure_layout: bool
    ) -> Any:
        async with self.session(target, ensure_layout=ensure_layout) as host:
            return await action(host)

    async def run_fleet(
        self,
        targets: Sequence[HostTarget],
        action: HostAction,
        parallel: bool = True,
        ensure_layout: bool = True,
    ) -> FleetOutcome:
        outcome = FleetOutcome()
        if not parallel:
            for target in targets:
                label = str(target.address)
                try:
                    outcome.results[label] = await self._run_one(
                        target, action, ensure_layout
                    )
                except Exception as e:
                    outcome.failed_host, outcome.error = label, e
                    break
            return outcome

        tasks = {
            asyncio.ensure_future(self._run_one(target, action, ensure_layout)): str(
                target.address
            )
            for target in targets
        }
        finished: dict[str, Any] = {}
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_EXCEPTION
            )
            failed = [t for t in done if t.exception() is not None]
            for task in done:
                if task.exception() is None:
                    finished[tasks[task]] = task.result()
            if failed:
                first = failed[0]
                outcome.failed_host = tasks[first]
                outcome.error = first.exception()
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)
                    logger.warning(
                        "Cancelled %d pending host(s) after failure on %s",
                        len(pending),
                        outcome.failed_host,
                    )
                break

        order = [str(t.address) for t in targets]
        outcome.results = {label: finished[label] for label in order if label in finished}
        return outcome


def root_cause(error: Optional[BaseException]) -> Optional[BaseException]:
    """Unwraps workflow errors down to the failure a user should see."""
    while isinstance(error, OrchestrationError) and error.cause is not None:
        error = error.cause
    return error
