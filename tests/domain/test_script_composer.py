"""Tests for operational script rendering."""

import dataclasses
import pytest
from harp.domain.entities.application import ManagedFile
from harp.domain.errors import ConfigurationError, ManagedFileNotFoundError
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.services.script_composer import (
    HEREDOC_DELIMITER,
    ScriptComposer,
    ensure_errexit,
    escape_heredoc,
    heredoc_write_command,
)
from harp.domain.value_objects.release import ReleaseContext

RELEASE = ReleaseContext("24-01-02-03:04:05")


@pytest.fixture
def composer(web_app, search_root):
    return ScriptComposer(web_app, ManagedFileLocator([search_root]))


class TestEscaping:
    def test_escape_dollar_backtick_backslash(self):
        assert escape_heredoc("echo $HOME `id` \\n") == "echo \\$HOME \\`id\\` \\\\n"

    def test_escape_leaves_plain_text(self):
        assert escape_heredoc("mkdir -p /tmp/a") == "mkdir -p /tmp/a"

    def test_heredoc_write_command(self):
        command = heredoc_write_command("/h/harp/web/kill.sh", "kill $pid", executable=True)
        assert command == (
            f"cat <<{HEREDOC_DELIMITER} > /h/harp/web/kill.sh\n"
            "kill \\$pid\n"
            f"{HEREDOC_DELIMITER}\n"
            "chmod +x /h/harp/web/kill.sh\n"
        )

    def test_heredoc_without_chmod(self):
        assert "chmod" not in heredoc_write_command("/h/info", "built")


class TestEnsureErrexit:
    def test_inserted_at_top(self):
        assert ensure_errexit("echo hi\n") == "set -e\necho hi\n"

    def test_inserted_after_shebang(self):
        assert ensure_errexit("#!/bin/bash\necho hi") == "#!/bin/bash\nset -e\necho hi"

    def test_existing_set_e_kept(self):
        script = "# deploy\nset -e\necho hi\n"
        assert ensure_errexit(script) == script


class TestSyncFiles:
    def test_file_entry(self, composer, web_host):
        sync = composer.sync_files(web_host)
        assert sync.splitlines() == [
            "mkdir -p /home/deploy/go/bin /home/deploy/go/src /home/deploy/go/src/example.com/web",
            'mkdir -p "/home/deploy/go/src/config"',
            'rsync -az "/home/deploy/harp/web/files/config_app.yaml" "/home/deploy/go/src/config/app.yaml"',
            "cp /home/deploy/harp/web/harp-build.info /home/deploy/go/src/example.com/web/",
            "rsync -az /home/deploy/harp/web/web /home/deploy/go/bin/web",
        ]
        assert not sync.endswith("\n")

    def test_directory_entry_with_delete(self, web_app, web_host, search_root):
        (search_root / "static" / "css").mkdir(parents=True)
        (search_root / "static" / "css" / "site.css").write_text("body {}")
        app = dataclasses.replace(web_app, files=(ManagedFile("static", delete=True),))
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        sync = composer.sync_files(web_host)
        assert (
            'rsync -az --delete "/home/deploy/harp/web/files/static/" '
            '"/home/deploy/go/src/static/"'
        ) in sync

    def test_first_search_path_wins(self, web_app, web_host, tmp_path, search_root):
        other = tmp_path / "other"
        (other / "config" / "app.yaml").mkdir(parents=True)
        composer = ScriptComposer(web_app, ManagedFileLocator([other, search_root]))
        assert '"/home/deploy/go/src/config/app.yaml/"' in composer.sync_files(web_host)

    def test_missing_file_lists_search_paths(self, web_app, web_host, tmp_path):
        composer = ScriptComposer(web_app, ManagedFileLocator([tmp_path / "a", tmp_path / "b"]))
        with pytest.raises(ManagedFileNotFoundError) as exc:
            composer.sync_files(web_host)
        assert exc.value.path == "config/app.yaml"
        assert str(tmp_path / "b") in str(exc.value)


class TestRestartServer:
    def test_deterministic(self, composer, web_host):
        assert composer.restart_server(web_host) == composer.restart_server(web_host)
        assert composer.compose(web_host) == composer.compose(web_host)

    def test_kill_then_launch(self, composer, web_host):
        lines = composer.restart_server(web_host).splitlines()
        assert lines[0] == "if [[ -f /home/deploy/harp/web/app.pid ]]; then"
        assert "\t\tkill -KILL $target > /dev/null 2>&1 || true" in lines
        assert lines[-6:] == [
            "mkdir -p /home/deploy/harp/web/log",
            "touch /home/deploy/harp/web/log/app.log",
            "cd /home/deploy/go/src/example.com/web",
            'GOPATH="/home/deploy/go" APP_ENV="production" nohup /home/deploy/go/bin/web '
            "-port 8080 >> /home/deploy/harp/web/log/app.log 2>&1 < /dev/null &",
            "echo $! > /home/deploy/harp/web/app.pid",
            "cd /home/deploy",
        ]

    def test_host_envs_override_app_envs(self, web_app, search_root, web_host):
        host = type(web_host)(
            address=web_host.address,
            executor=None,
            app=web_app,
            home="/home/deploy",
            runtime_root="/home/deploy/go",
            envs={"APP_ENV": "staging", "REGION": "eu"},
        )
        composer = ScriptComposer(web_app, ManagedFileLocator([search_root]))
        launch = [l for l in composer.restart_server(host).splitlines() if "nohup" in l][0]
        assert launch.startswith('GOPATH="/home/deploy/go" APP_ENV="staging" REGION="eu" nohup')

    def test_env_values_are_quoted(self, web_app, search_root, web_host):
        app = dataclasses.replace(web_app, envs={"GREETING": 'say "hi"'})
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        assert 'GREETING="say \\"hi\\""' in composer.restart_server(web_host)

    def test_custom_kill_signal(self, web_app, search_root, web_host):
        app = dataclasses.replace(web_app, kill_signal="TERM")
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        assert "kill -TERM $target" in composer.kill_server(web_host)


class TestSaveRelease:
    def test_disabled(self, composer, web_host):
        assert composer.save_release(web_host, ReleaseContext(RELEASE.timestamp, False)) == ""

    def test_guarded_by_build_marker(self, composer, web_host):
        script = composer.save_release(web_host, RELEASE)
        assert script.splitlines()[0] == (
            "if [[ -f /home/deploy/harp/web/harp-build.info && "
            "! -d /home/deploy/harp/web/releases/24-01-02-03:04:05 ]]; then"
        )

    def test_archives_exact_items(self, composer, web_host):
        script = composer.save_release(web_host, RELEASE)
        assert "for item in web harp-build.info files kill.sh restart.sh rollback.sh; do" in script
        assert "cp -rf /home/deploy/harp/web/$item /home/deploy/harp/web/releases/24-01-02-03:04:05/" in script


class TestComposedScripts:
    def test_default_deploy_is_sync_then_restart(self, composer, web_host):
        bundle = composer.compose(web_host)
        assert bundle.deploy.startswith("set -e\nmkdir -p /home/deploy/go/bin")
        assert bundle.deploy.index("rsync -az /home/deploy/harp/web/web") < bundle.deploy.index("nohup")

    def test_restart_and_kill(self, composer, web_host):
        bundle = composer.compose(web_host)
        assert bundle.restart.startswith("set -e\nif [[ -f /home/deploy/harp/web/app.pid")
        assert bundle.kill.startswith("set -e\nif [[ -f")
        assert "nohup" not in bundle.kill

    def test_rollback_usage_and_restore(self, composer, web_host):
        rollback = composer.compose(web_host).rollback
        assert "version=$1" in rollback
        assert "ls -1 /home/deploy/harp/web/releases 2> /dev/null || true\n\texit 1" in rollback
        assert "cp -rf /home/deploy/harp/web/releases/$version/$file /home/deploy/harp/web/$file" in rollback
        assert rollback.index("rm -rf /home/deploy/harp/web/$file") < rollback.index("nohup")

    def test_persisted_scripts(self, composer, web_host):
        assert set(composer.compose(web_host).persisted()) == {"kill", "restart", "rollback"}

    def test_custom_deploy_script(self, web_app, search_root, web_host):
        app = dataclasses.replace(
            web_app, deploy_script="{{ sync_files }}\necho deployed {{ app.name }} to {{ host }}\n"
        )
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        deploy = composer.deploy_script(web_host)
        assert deploy.startswith("set -e\nmkdir -p /home/deploy/go/bin")
        assert deploy.endswith("echo deployed web to deploy@example.com:22\n")

    def test_custom_deploy_may_use_save_release(self, web_app, search_root, web_host):
        app = dataclasses.replace(
            web_app,
            deploy_script="{{ sync_files }}\n{{ save_release }}\n{{ restart_server }}\n",
        )
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        deploy = composer.deploy_script(web_host)
        sync = composer.sync_files(web_host)
        restart = composer.restart_server(web_host)
        assert deploy == f"set -e\n{sync}\n\n{restart}\n"

    def test_custom_restart_script(self, web_app, search_root, web_host):
        app = dataclasses.replace(web_app, restart_script="{{ restart_server }}\n")
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        assert composer.restart_script(web_host).startswith("set -e\nif [[ -f")

    def test_undefined_template_variable(self, web_app, search_root, web_host):
        app = dataclasses.replace(web_app, deploy_script="{{ nope }}")
        composer = ScriptComposer(app, ManagedFileLocator([search_root]))
        with pytest.raises(ConfigurationError, match="failed to render"):
            composer.deploy_script(web_host)

    def test_save_script_command(self, composer, web_host):
        command = composer.save_script_command(web_host, "restart", "echo $! > pid\n")
        assert command.startswith(f"cat <<{HEREDOC_DELIMITER} > /home/deploy/harp/web/restart.sh\n")
        assert "echo \\$! > pid\n" in command
        assert command.endswith("chmod +x /home/deploy/harp/web/restart.sh\n")
