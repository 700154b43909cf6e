"""Tests for composition root DI container."""

import pytest
from harp.composition_root import HarpContainer, create_container
from harp.domain.errors import ConfigurationError
from harp.infrastructure.adapters.fabric_adapter import FabricConnector
from harp.infrastructure.adapters.rsync_adapter import RsyncAdapter
from harp.infrastructure.config import AppConfig, HarpConfig, ReleaseConfig, SSHConfig


def _config(**kwargs):
    return HarpConfig(app=AppConfig(name="web", import_path="example.com/web"), **kwargs)


class TestCompositionRoot:
    def test_create_container(self):
        container = create_container(_config())

        assert isinstance(container, HarpContainer)
        assert isinstance(container.connector, FabricConnector)
        assert isinstance(container.transfer, RsyncAdapter)
        assert container.app.name == "web"

    def test_use_cases_share_sessions_and_release_manager(self):
        container = create_container(_config())

        assert container.deploy_fleet.sessions is container.sessions
        assert container.rollback.sessions is container.sessions
        assert container.deploy_fleet.release_manager is container.release_manager
        assert container.deploy_fleet.event_bus is container.event_bus

    def test_config_flows_into_services(self):
        container = create_container(
            _config(
                release=ReleaseConfig(no_rollback=True, keep=9),
                ssh=SSHConfig(connect_timeout=7, command_timeout=60, runtime_root_var="APPROOT"),
            )
        )

        assert container.release_manager.rollback_enabled is False
        assert container.release_manager.policy.keep == 9
        assert container.connector.connect_timeout == 7
        assert container.sessions.command_timeout == 60
        assert container.composer.runtime_root_var == "APPROOT"

    def test_serial_override(self):
        container = create_container(_config(), parallel=False)
        assert container.deploy_fleet.parallel is False
        assert container.processes.parallel is False

    def test_staging_dir_relative_to_config(self, tmp_path):
        container = create_container(_config(base_dir=str(tmp_path)))
        assert container.deploy_fleet.staging_dir == tmp_path / "tmp" / "harp"

    def test_missing_app_name(self):
        with pytest.raises(ConfigurationError):
            create_container(HarpConfig())
