"""
Script Composer

Architectural Intent:
- Renders the operational shell scripts (deploy, restart, kill, rollback)
  and the embedded save-release step from Jinja2 templates
- Every script is a deterministic function of the host, the application
  and the release context; the same inputs give byte-identical text
- Rendering goes through a typed ScriptData structure, never through ad-hoc
  string concatenation

Escaping:
- Scripts are persisted through an unquoted heredoc; escape_heredoc() keeps
  the remote shell from interpolating anything while the file is written,
  so variables expand only when the script is executed
"""

from __future__ import annotations
import posixpath
from dataclasses import dataclass, field
from typing import Any, Optional

from jinja2 import Environment, StrictUndefined, TemplateError

from harp.domain.entities.application import ApplicationSpec
from harp.domain.entities.remote_host import DEFAULT_RUNTIME_ROOT_VAR, RemoteHost
from harp.domain.errors import ConfigurationError
from harp.domain.services import script_templates
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.value_objects.release import ReleaseContext
from harp.domain.value_objects.remote_layout import (
    BUILD_INFO,
    FILES_DIR,
    RemoteLayout,
    SCRIPT_NAMES,
)

HEREDOC_DELIMITER = "HARP_SCRIPT_EOF"


def escape_heredoc(text: str) -> str:
    """
    Escapes backslashes, backticks and every '$' so an unquoted heredoc
    writes the text verbatim.
    """
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("$", "\\$")


def heredoc_write_command(path: str, body: str, executable: bool = False) -> str:
    command = (
        f"cat <<{HEREDOC_DELIMITER} > {path}\n"
        f"{escape_heredoc(body)}\n"
        f"{HEREDOC_DELIMITER}\n"
    )
    if executable:
        command += f"chmod +x {path}\n"
    return command


def ensure_errexit(script: str) -> str:
    """Makes sure a custom script runs under `set -e`."""
    lines = script.splitlines()
    body_start = 1 if lines and lines[0].startswith("#!") else 0
    for line in lines[body_start:]:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped == "set -e":
            return script
        break
    lines.insert(body_start, "set -e")
    return "\n".join(lines) + ("\n" if script.endswith("\n") else "")


def _double_quoted(value: Any) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


_ENV = Environment(
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)
_ENV.filters["dq"] = _double_quoted


@dataclass(frozen=True)
class SyncEntry:
    source: str
    destination: str
    delete: bool = False

    @property
    def destination_parent(self) -> str:
        return posixpath.dirname(self.destination.rstrip("/"))


@dataclass(frozen=True)
class ScriptData:
    """Everything a template may reference."""
    app: ApplicationSpec
    host: str
    layout: RemoteLayout
    home: str
    runtime_root: str
    envs: tuple[tuple[str, str], ...] = ()
    files: tuple[SyncEntry, ...] = ()
    sync_files: str = ""
    kill_server: str = ""
    restart_server: str = ""
    # archiving runs as its own step before the upload, so custom deploy
    # scripts that still reference it get an empty string
    save_release: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def as_context(self) -> dict[str, Any]:
        return {
            "app": self.app,
            "host": self.host,
            "layout": self.layout,
            "home": self.home,
            "runtime_root": self.runtime_root,
            "envs": self.envs,
            "files": self.files,
            "sync_files": self.sync_files,
            "kill_server": self.kill_server,
            "restart_server": self.restart_server,
            "save_release": self.save_release,
            **self.extra,
        }


@dataclass(frozen=True)
class ScriptBundle:
    deploy: str
    restart: str
    kill: str
    rollback: str

    def persisted(self) -> dict[str, str]:
        """Scripts written to <app dir>/<name>.sh, keyed by name."""
        return {"kill": self.kill, "restart": self.restart, "rollback": self.rollback}


def render(template: str, context: dict[str, Any]) -> str:
    try:
        return _ENV.from_string(template).render(**context)
    except TemplateError as e:
        raise ConfigurationError("failed to render script template", str(e)) from e


class ScriptComposer:
    def __init__(
        self,
        app: ApplicationSpec,
        locator: ManagedFileLocator,
        runtime_root_var: str = DEFAULT_RUNTIME_ROOT_VAR,
    ):
        self.app = app
        self.locator = locator
        self.runtime_root_var = runtime_root_var

    def _sync_entries(self, host: RemoteHost) -> tuple[SyncEntry, ...]:
        entries = []
        for located in self.locator.locate_all(self.app.files):
            source = f"{host.layout.files_dir}/{located.managed.staged_name}"
            destination = f"{host.runtime_root}/src/{located.managed.path}"
            if located.is_dir:
                source += "/"
                destination += "/"
            entries.append(SyncEntry(source, destination, located.managed.delete))
        return tuple(entries)

    def _envs(self, host: RemoteHost) -> tuple[tuple[str, str], ...]:
        merged: dict[str, str] = {self.runtime_root_var: host.runtime_root}
        merged.update(self.app.envs)
        merged.update(host.envs)
        return tuple(merged.items())

    def script_data(self, host: RemoteHost) -> ScriptData:
        base = ScriptData(
            app=self.app,
            host=str(host),
            layout=host.layout,
            home=host.home,
            runtime_root=host.runtime_root,
            envs=self._envs(host),
            files=self._sync_entries(host),
        )
        context = base.as_context()
        sync_files = render(script_templates.SYNC_FILES, context).rstrip("\n")
        kill_server = render(script_templates.KILL_SERVER, context).rstrip("\n")
        restart_server = render(
            script_templates.RESTART_SERVER, {**context, "kill_server": kill_server}
        ).rstrip("\n")
        return ScriptData(
            app=base.app,
            host=base.host,
            layout=base.layout,
            home=base.home,
            runtime_root=base.runtime_root,
            envs=base.envs,
            files=base.files,
            sync_files=sync_files,
            kill_server=kill_server,
            restart_server=restart_server,
        )

    def sync_files(self, host: RemoteHost) -> str:
        return self.script_data(host).sync_files

    def restart_server(self, host: RemoteHost) -> str:
        return self.script_data(host).restart_server

    def kill_server(self, host: RemoteHost) -> str:
        return self.script_data(host).kill_server

    def save_release(self, host: RemoteHost, release: ReleaseContext) -> str:
        """Archival step; empty when rollback support is disabled."""
        if not release.rollback_enabled:
            return ""
        layout = host.layout
        archived = [self.app.name, BUILD_INFO, FILES_DIR]
        archived += [f"{name}.sh" for name in SCRIPT_NAMES]
        return render(
            script_templates.SAVE_RELEASE,
            {
                "layout": layout,
                "release_dir": layout.release_dir(release.timestamp),
                "archived": archived,
            },
        ).rstrip("\n")

    def deploy_script(self, host: RemoteHost, data: Optional[ScriptData] = None) -> str:
        data = data or self.script_data(host)
        if self.app.deploy_script:
            return ensure_errexit(render(self.app.deploy_script, data.as_context()))
        return render(script_templates.DEFAULT_DEPLOY, data.as_context())

    def restart_script(self, host: RemoteHost, data: Optional[ScriptData] = None) -> str:
        data = data or self.script_data(host)
        if self.app.restart_script:
            return ensure_errexit(render(self.app.restart_script, data.as_context()))
        return render(script_templates.DEFAULT_RESTART, data.as_context())

    def kill_script(self, host: RemoteHost, data: Optional[ScriptData] = None) -> str:
        data = data or self.script_data(host)
        return render(script_templates.KILL, data.as_context())

    def rollback_script(self, host: RemoteHost, data: Optional[ScriptData] = None) -> str:
        data = data or self.script_data(host)
        return render(script_templates.ROLLBACK, data.as_context())

    def compose(self, host: RemoteHost) -> ScriptBundle:
        data = self.script_data(host)
        return ScriptBundle(
            deploy=self.deploy_script(host, data),
            restart=self.restart_script(host, data),
            kill=self.kill_script(host, data),
            rollback=self.rollback_script(host, data),
        )

    def save_script_command(self, host: RemoteHost, name: str, body: str) -> str:
        return heredoc_write_command(
            host.layout.script_path(name), body.rstrip("\n"), executable=True
        )
