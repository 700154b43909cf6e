"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file (harp.json)
- Provides typed access to the application, server sets and run options
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Custom deploy/restart scripts are paths; their text is read at load time
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence
import dataclasses
import json
import logging
import os

from harp.domain.entities.application import ApplicationSpec, ManagedFile
from harp.domain.errors import ConfigurationError
from harp.domain.value_objects.remote_address import HostTarget, parse_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Application section."""
    name: str = ""
    import_path: str = ""
    files: tuple[ManagedFile, ...] = ()
    args: tuple[str, ...] = ()
    envs: dict[str, str] = field(default_factory=dict)
    kill_sig: str = "KILL"
    deploy_script: str = ""
    restart_script: str = ""

    def to_spec(self, base_dir: Optional[Path] = None) -> ApplicationSpec:
        if not self.name:
            raise ConfigurationError("app.name is required")
        return ApplicationSpec(
            name=self.name,
            import_path=self.import_path or self.name,
            files=self.files,
            args=self.args,
            envs=dict(self.envs),
            kill_signal=self.kill_sig,
            deploy_script=_read_script(self.deploy_script, base_dir),
            restart_script=_read_script(self.restart_script, base_dir),
        )


@dataclass(frozen=True)
class ServerConfig:
    """One server entry of a server set."""
    address: str
    home: str = ""
    runtime_root: str = ""
    log_dir: str = ""
    envs: dict[str, str] = field(default_factory=dict)

    def to_target(self, set_name: str) -> HostTarget:
        return HostTarget(
            address=parse_address(self.address).unwrap(set_name),
            set_name=set_name,
            home=self.home,
            runtime_root=self.runtime_root,
            log_dir=self.log_dir,
            envs=dict(self.envs),
        )


@dataclass(frozen=True)
class BuildConfig:
    """Local build and staging configuration."""
    command: tuple[str, ...] = ("go", "build", "-o", "{output}", "{import_path}")
    env: dict[str, str] = field(default_factory=dict)
    search_paths: tuple[str, ...] = ()
    staging_dir: str = "tmp/harp"

    def resolved_search_paths(self) -> list[Path]:
        if self.search_paths:
            return [Path(p).expanduser() for p in self.search_paths]
        gopath = os.environ.get("GOPATH", "")
        roots = [Path(p) / "src" for p in gopath.split(os.pathsep) if p]
        return roots or [Path.cwd()]


@dataclass(frozen=True)
class ReleaseConfig:
    """Release history configuration."""
    no_rollback: bool = False
    keep: int = 5
    max_age_days: int = 0


@dataclass(frozen=True)
class SSHConfig:
    """Remote session configuration."""
    connect_timeout: int = 30
    command_timeout: int = 0
    runtime_root_var: str = "GOPATH"
    parallel: bool = True


@dataclass(frozen=True)
class HarpConfig:
    """Root configuration for Harp."""
    app: AppConfig = field(default_factory=AppConfig)
    servers: dict[str, tuple[ServerConfig, ...]] = field(default_factory=dict)
    build: BuildConfig = field(default_factory=BuildConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    ssh: SSHConfig = field(default_factory=SSHConfig)
    log_level: str = "WARNING"
    base_dir: str = "."

    def targets(
        self,
        sets: Sequence[str] = (),
        servers: Sequence[str] = (),
    ) -> list[HostTarget]:
        """Selects hosts by set name and/or address; nothing selected means all."""
        unknown = [s for s in sets if s not in self.servers]
        if unknown:
            raise ConfigurationError(
                f"unknown server set(s): {', '.join(unknown)}",
                f"Available sets: {', '.join(sorted(self.servers)) or '(none)'}",
            )

        selected: list[HostTarget] = []
        seen: set[str] = set()
        for set_name, entries in self.servers.items():
            for entry in entries:
                target = entry.to_target(set_name)
                wanted = (
                    (not sets and not servers)
                    or set_name in sets
                    or entry.address in servers
                    or str(target.address) in servers
                )
                if wanted and str(target.address) not in seen:
                    seen.add(str(target.address))
                    selected.append(target)

        for raw in servers:
            result = parse_address(raw)
            if result.ok and str(result.address) in seen:
                continue
            if any(raw == e.address for entries in self.servers.values() for e in entries):
                continue
            target = HostTarget(address=result.unwrap("--server"), set_name="")
            seen.add(str(target.address))
            selected.append(target)
        return selected


def _read_script(path: str, base_dir: Optional[Path]) -> Optional[str]:
    if not path:
        return None
    script_path = Path(path).expanduser()
    if not script_path.is_absolute() and base_dir is not None:
        script_path = base_dir / script_path
    try:
        return script_path.read_text()
    except OSError as e:
        raise ConfigurationError(f"failed to read script {script_path}", str(e)) from e


def _env_override(data: dict, prefix: str = "HARP") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern HARP_SECTION_KEY.
    For example: HARP_SSH_PARALLEL=false, HARP_RELEASE_KEEP=10
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        parts = key[len(prefix) + 1:].lower().split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if section == "log":
                data[key[len(prefix) + 1:].lower()] = value
                continue
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        elif len(parts) == 1:
            data[parts[0]] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    for f in dataclasses.fields(cls):
        if f.name not in filtered:
            continue
        val = filtered[f.name]

        # Convert comma-separated strings to tuples for tuple fields
        if f.type == "tuple[str, ...]":
            if isinstance(val, str):
                filtered[f.name] = tuple(v.strip() for v in val.split(",") if v.strip())
            elif isinstance(val, list):
                filtered[f.name] = tuple(str(v) for v in val)

        # Convert string numbers to int/bool
        elif isinstance(val, str):
            if f.type == "int":
                filtered[f.name] = int(val)
            elif f.type == "bool":
                filtered[f.name] = val.lower() in ("true", "1", "yes")

        elif f.type == "dict[str, str]" and isinstance(val, dict):
            filtered[f.name] = {str(k): str(v) for k, v in val.items()}

    return cls(**filtered)


def _managed_files(raw: Any) -> tuple[ManagedFile, ...]:
    if isinstance(raw, str):
        raw = [p.strip() for p in raw.split(",") if p.strip()]
    files = []
    for entry in raw or []:
        if isinstance(entry, str):
            files.append(ManagedFile(path=entry))
        elif isinstance(entry, dict):
            files.append(
                ManagedFile(path=entry.get("path", ""), delete=bool(entry.get("delete", False)))
            )
        else:
            raise ConfigurationError(f"invalid managed file entry: {entry!r}")
    return tuple(files)


def _build_app_config(data: dict) -> AppConfig:
    data = dict(data)
    files = _managed_files(data.pop("files", ()))
    return dataclasses.replace(_build_sub_config(AppConfig, data), files=files)


def _build_servers(data: Any) -> dict[str, tuple[ServerConfig, ...]]:
    if not isinstance(data, dict):
        raise ConfigurationError("servers must map set names to server lists")
    servers: dict[str, tuple[ServerConfig, ...]] = {}
    for set_name, entries in data.items():
        if isinstance(entries, (str, dict)):
            entries = [entries]
        parsed = []
        for entry in entries:
            if isinstance(entry, str):
                parsed.append(ServerConfig(address=entry))
            elif isinstance(entry, dict) and "address" in entry:
                parsed.append(_build_sub_config(ServerConfig, entry))
            else:
                raise ConfigurationError(
                    f"{set_name} contains an invalid server entry", repr(entry)
                )
        servers[set_name] = tuple(parsed)
    return servers


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "HARP",
) -> HarpConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (HARP_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to harp.json in CWD.
        env_prefix: Environment variable prefix. Defaults to HARP.
    """
    config_path = Path(path) if path else Path("harp.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return HarpConfig(
        app=_build_app_config(data.get("app", {})),
        servers=_build_servers(data.get("servers", {})),
        build=_build_sub_config(BuildConfig, data.get("build", {})),
        release=_build_sub_config(ReleaseConfig, data.get("release", {})),
        ssh=_build_sub_config(SSHConfig, data.get("ssh", {})),
        log_level=data.get("log_level", "WARNING"),
        base_dir=str(config_path.parent),
    )
