"""Tests for restart, kill, build info and diff across the fleet."""

import pytest
from conftest import FakeConnector, FakeExecutor
from harp.application.dtos.deployment_dtos import FleetCommandRequest
from harp.application.orchestration.host_sessions import HostSessionFactory
from harp.application.use_cases.diff_files import DiffFiles
from harp.application.use_cases.inspect_fleet import NO_BUILD_INFO, InspectFleet
from harp.application.use_cases.manage_processes import ManageProcesses
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.services.file_reconciler import FileReconciler
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.remote_address import HostTarget, parse_address
from harp.infrastructure.adapters.shell_probe import ShellEnvironmentProbe


def _request(*raws):
    return FleetCommandRequest(
        targets=[
            HostTarget(parse_address(raw).unwrap(), home="/home/deploy", runtime_root="/opt/go")
            for raw in raws
        ]
    )


def _sessions(web_app, connector):
    return HostSessionFactory(connector, web_app, ShellEnvironmentProbe)


class TestManageProcesses:
    @pytest.mark.asyncio
    async def test_restart_runs_persisted_script(self, web_app):
        connector = FakeConnector()
        response = await ManageProcesses(_sessions(web_app, connector)).restart(
            _request("deploy@a.example.com")
        )
        assert response.success
        assert connector.executors["deploy@a.example.com:22"].commands == [
            "bash /home/deploy/harp/web/restart.sh"
        ]

    @pytest.mark.asyncio
    async def test_kill_runs_persisted_script(self, web_app):
        connector = FakeConnector()
        await ManageProcesses(_sessions(web_app, connector)).kill(_request("deploy@a.example.com"))
        assert connector.executors["deploy@a.example.com:22"].commands == [
            "bash /home/deploy/harp/web/kill.sh"
        ]

    @pytest.mark.asyncio
    async def test_missing_script_fails(self, web_app):
        connector = FakeConnector(
            lambda address: FakeExecutor().on(
                "restart.sh", CommandResult("", 127, "No such file or directory")
            )
        )
        response = await ManageProcesses(_sessions(web_app, connector)).restart(
            _request("deploy@a.example.com")
        )
        assert not response.success
        assert response.failed_host == "deploy@a.example.com:22"


class TestInspectFleet:
    @pytest.mark.asyncio
    async def test_build_info_per_host(self, web_app):
        def remote(address):
            if address.host == "a.example.com":
                return FakeExecutor().on("^cat ", CommandResult("", 0, "Build time: today\n"))
            return FakeExecutor().on("^cat ", CommandResult("", 1, "No such file"))

        connector = FakeConnector(remote)
        response = await InspectFleet(_sessions(web_app, connector)).build_info(
            _request("deploy@a.example.com", "deploy@b.example.com")
        )
        assert response.success
        assert response.outputs == {
            "deploy@a.example.com:22": "Build time: today",
            "deploy@b.example.com:22": NO_BUILD_INFO,
        }
        assert connector.executors["deploy@a.example.com:22"].commands == [
            "cat /home/deploy/harp/web/harp-build.info"
        ]


class TestDiffFiles:
    @pytest.mark.asyncio
    async def test_reports_per_host(self, web_app, search_root):
        connector = FakeConnector(
            lambda address: FakeExecutor().on(
                "find", CommandResult("", 0, "/home/deploy/harp/web/files/old.yaml\n")
            )
        )
        use_case = DiffFiles(
            _sessions(web_app, connector),
            web_app,
            ManagedFileLocator([search_root]),
            FileReconciler(),
        )
        response = await use_case.execute(_request("deploy@a.example.com"))

        source = search_root / "config" / "app.yaml"
        assert response.success
        assert response.outputs == {"deploy@a.example.com:22": f"+ 13 {source}\n- old.yaml\n"}

    @pytest.mark.asyncio
    async def test_missing_local_file_fails_before_connecting(self, web_app, tmp_path):
        connector = FakeConnector()
        use_case = DiffFiles(
            _sessions(web_app, connector), web_app, ManagedFileLocator([tmp_path]), FileReconciler()
        )
        response = await use_case.execute(_request("deploy@a.example.com"))

        assert not response.success
        assert "failed to find config/app.yaml" in response.message
        assert connector.executors == {}
