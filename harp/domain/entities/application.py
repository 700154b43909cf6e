from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ManagedFile:
    """
    A configuration or data file synced to every host alongside the artifact.
    """
    path: str
    delete: bool = False

    def __post_init__(self) -> None:
        if not self.path or self.path.startswith("/"):
            raise ValueError(f"Managed file path must be relative: {self.path!r}")

    @property
    def staged_name(self) -> str:
        """Flat name used under the remote files/ directory."""
        return self.path.strip("/").replace("/", "_")


@dataclass(frozen=True)
class ApplicationSpec:
    """
    Read-only description of the application being deployed.
    """
    name: str
    import_path: str
    files: tuple[ManagedFile, ...] = ()
    args: tuple[str, ...] = ()
    envs: dict[str, str] = field(default_factory=dict, compare=False)
    kill_signal: str = "KILL"
    deploy_script: Optional[str] = None
    restart_script: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Application name cannot be empty")
        if "/" in self.name:
            raise ValueError(f"Application name cannot contain '/': {self.name!r}")
        if not self.import_path:
            raise ValueError("Application import_path cannot be empty")
        if not self.kill_signal:
            raise ValueError("kill_signal cannot be empty")
