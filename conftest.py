"""Global test configuration.

Shared fakes for the remote side: an executor that records commands and
answers from a scripted table, and a connector handing out such executors.
"""

import re
import subprocess
import time
from typing import Callable, Optional, Union

import pytest

from harp.domain.entities.application import ApplicationSpec, ManagedFile
from harp.domain.entities.remote_host import RemoteHost
from harp.domain.ports.remote_executor_port import RemoteConnectorPort, RemoteExecutorPort
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.remote_address import RemoteAddress

Response = Union[CommandResult, Exception, Callable[[str], CommandResult]]


class FakeExecutor(RemoteExecutorPort):
    """Records every command; replies from (regex -> response) rules, else exit 0."""

    def __init__(self, rules: Optional[list[tuple[str, Response]]] = None):
        self.rules = list(rules or [])
        self.commands: list[str] = []
        self.closed = False

    def on(self, pattern: str, response: Response) -> "FakeExecutor":
        self.rules.append((pattern, response))
        return self

    def run(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        self.commands.append(command)
        for pattern, response in self.rules:
            if re.search(pattern, command):
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(command)
                return CommandResult(command, response.exit_code, response.output)
        return CommandResult(command, 0, "")

    def close(self) -> None:
        self.closed = True


class FakeConnector(RemoteConnectorPort):
    def __init__(self, factory: Optional[Callable[[RemoteAddress], FakeExecutor]] = None):
        self.factory = factory or (lambda address: FakeExecutor())
        self.executors: dict[str, FakeExecutor] = {}
        self.failures: dict[str, Exception] = {}

    def connect(self, address: RemoteAddress) -> FakeExecutor:
        if str(address) in self.failures:
            raise self.failures[str(address)]
        executor = self.factory(address)
        self.executors[str(address)] = executor
        return executor


def process_state(pid: int) -> str:
    """ps STAT column for pid; empty once the process is gone."""
    result = subprocess.run(
        ["ps", "-o", "stat=", "-p", str(pid)], capture_output=True, text=True
    )
    return result.stdout.strip()


def wait_until_stopped(pid: int, timeout: float = 5.0) -> bool:
    """True once pid has exited (a zombie counts as exited)."""
    deadline = time.monotonic() + timeout
    while True:
        state = process_state(pid)
        if not state or state.startswith("Z"):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(0.05)


@pytest.fixture
def web_app():
    return ApplicationSpec(
        name="web",
        import_path="example.com/web",
        files=(ManagedFile("config/app.yaml"),),
        args=("-port", "8080"),
        envs={"APP_ENV": "production"},
    )


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def web_host(web_app, fake_executor):
    return RemoteHost(
        address=RemoteAddress("deploy", "example.com"),
        executor=fake_executor,
        app=web_app,
        set_name="production",
        home="/home/deploy",
        runtime_root="/home/deploy/go",
    )


@pytest.fixture
def search_root(tmp_path):
    """A local search path holding config/app.yaml."""
    root = tmp_path / "src"
    (root / "config").mkdir(parents=True)
    (root / "config" / "app.yaml").write_text("listen: 8080\n")
    return root
