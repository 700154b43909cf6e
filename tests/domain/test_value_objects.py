"""Tests for value objects: RemoteAddress, RemoteLayout, ReleaseContext, FileDiffEntry."""

import pytest
from harp.domain.errors import ConfigurationError
from harp.domain.value_objects.command_result import CommandResult
from harp.domain.value_objects.file_diff import DiffDirection, FileDiffEntry
from harp.domain.value_objects.release import ReleaseContext, is_release_id
from harp.domain.value_objects.remote_address import (
    AddressParseFailure,
    HostTarget,
    RemoteAddress,
    parse_address,
)
from harp.domain.value_objects.remote_layout import RemoteLayout


class TestParseAddress:
    def test_user_host_port(self):
        address = parse_address("deploy@10.0.0.1:2222").unwrap()
        assert address.user == "deploy"
        assert address.host == "10.0.0.1"
        assert address.port_suffix == ":2222"

    def test_default_port(self):
        address = parse_address("deploy@10.0.0.1").unwrap()
        assert address.port == 22
        assert address.port_suffix == ":22"

    def test_empty_port_uses_default(self):
        assert parse_address("deploy@10.0.0.1:").unwrap().port == 22

    def test_empty_user_fails(self):
        result = parse_address("@host:22")
        assert not result.ok
        assert result.failure is AddressParseFailure.EMPTY_USER
        with pytest.raises(ConfigurationError, match="production contains server with empty user name"):
            result.unwrap("production")

    def test_empty_host_fails(self):
        result = parse_address("user@:22")
        assert result.failure is AddressParseFailure.EMPTY_HOST
        with pytest.raises(ConfigurationError, match="staging contains server with empty host"):
            result.unwrap("staging")

    def test_missing_separator(self):
        result = parse_address("example.com")
        assert result.failure is AddressParseFailure.MISSING_USER_SEPARATOR
        with pytest.raises(ConfigurationError, match="malformed server address"):
            result.unwrap("production")

    @pytest.mark.parametrize(
        "raw", ["deploy@host:abc", "deploy@host:0", "deploy@host:70000", "deploy@host:\u00b2"]
    )
    def test_invalid_port(self, raw):
        assert parse_address(raw).failure is AddressParseFailure.INVALID_PORT

    def test_ipv6_brackets(self):
        address = parse_address("deploy@[::1]:2200").unwrap()
        assert address.host == "::1"
        assert address.port == 2200
        assert str(address) == "deploy@[::1]:2200"

    def test_unterminated_bracket(self):
        assert parse_address("deploy@[::1").failure is AddressParseFailure.UNTERMINATED_BRACKET

    def test_string_form(self):
        assert str(parse_address("deploy@example.com").unwrap()) == "deploy@example.com:22"

    def test_frozen(self):
        address = RemoteAddress("deploy", "example.com")
        with pytest.raises(AttributeError):
            address.user = "root"

    def test_host_target_str(self):
        target = HostTarget(RemoteAddress("deploy", "example.com", 2222), set_name="prod")
        assert str(target) == "deploy@example.com:2222"


class TestRemoteLayout:
    def test_paths(self):
        layout = RemoteLayout(home="/home/deploy", app_name="web")
        assert layout.app_dir == "/home/deploy/harp/web"
        assert layout.files_dir == "/home/deploy/harp/web/files"
        assert layout.artifact == "/home/deploy/harp/web/web"
        assert layout.build_info == "/home/deploy/harp/web/harp-build.info"
        assert layout.pid_file == "/home/deploy/harp/web/app.pid"
        assert layout.log_file == "/home/deploy/harp/web/log/app.log"
        assert layout.release_dir("24-01-02-03:04:05") == (
            "/home/deploy/harp/web/releases/24-01-02-03:04:05"
        )
        assert layout.script_path("rollback") == "/home/deploy/harp/web/rollback.sh"

    def test_log_dir_override(self):
        layout = RemoteLayout(home="/home/deploy", app_name="web", log_dir_override="/var/log/web")
        assert layout.log_file == "/var/log/web/app.log"

    def test_empty_home_stays_relative(self):
        layout = RemoteLayout(home="", app_name="web")
        assert layout.app_dir == "harp/web"
        assert layout.files_dir == "harp/web/files"
        assert layout.pid_file == "harp/web/app.pid"

    def test_unknown_script_rejected(self):
        with pytest.raises(ValueError, match="Unknown operational script"):
            RemoteLayout(home="/h", app_name="web").script_path("deploy")


class TestReleaseContext:
    def test_valid(self):
        release = ReleaseContext("24-01-02-03:04:05")
        assert str(release) == "24-01-02-03:04:05"
        assert release.rollback_enabled is True

    def test_invalid_timestamp(self):
        with pytest.raises(ValueError, match="Invalid release timestamp"):
            ReleaseContext("yesterday")

    def test_is_release_id(self):
        assert is_release_id("24-01-02-03:04:05")
        assert not is_release_id("24-01-02")
        assert not is_release_id("../etc")


class TestCommandResult:
    def test_ok_and_stripped(self):
        result = CommandResult("pwd", 0, "/home/deploy\n")
        assert result.ok
        assert result.stripped == "/home/deploy"
        assert not CommandResult("false", 1).ok


class TestFileDiffEntry:
    def test_added_renders_size_and_source(self):
        entry = FileDiffEntry("config_app.yaml", DiffDirection.ADDED, 13, "/src/config/app.yaml")
        assert entry.render() == "+ 13 /src/config/app.yaml"

    def test_removed_renders_path(self):
        entry = FileDiffEntry("old.yaml", DiffDirection.REMOVED)
        assert entry.render() == "- old.yaml"
