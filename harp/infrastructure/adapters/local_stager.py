"""
Local Stager

Architectural Intent:
- Prepares the upload payload in a local staging directory:
  <staging>/<app> (artifact) and <staging>/files/<flattened path>
- Produces the default build marker text (build time, builder, git commit)
"""

from __future__ import annotations
import getpass
import logging
import shutil
import socket
import subprocess
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

from harp.domain.entities.application import ApplicationSpec
from harp.domain.ports.artifact_builder_port import ArtifactBuilderPort
from harp.domain.services.file_locator import ManagedFileLocator
from harp.domain.value_objects.remote_layout import FILES_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedPayload:
    root: Path
    build_info: str
    artifact: Optional[Path] = None
    files_dir: Optional[Path] = None

    def sources(self) -> list[Path]:
        return [p for p in (self.artifact, self.files_dir) if p is not None]


def _git_commit(cwd: Optional[Path] = None) -> str:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            cwd=cwd,
        )
    except FileNotFoundError:
        return ""
    return result.stdout.strip() if result.returncode == 0 else ""


def default_build_info(app: ApplicationSpec, cwd: Optional[Path] = None) -> str:
    lines = [
        f"App: {app.name} ({app.import_path})",
        f"Build time: {datetime.now(UTC).isoformat()}",
        f"Builder: {getpass.getuser()}@{socket.gethostname()}",
    ]
    commit = _git_commit(cwd)
    if commit:
        lines.append(f"Git commit: {commit}")
    return "\n".join(lines)


class LocalStager:
    def __init__(self, locator: ManagedFileLocator, builder: ArtifactBuilderPort):
        self.locator = locator
        self.builder = builder

    def stage_files(self, app: ApplicationSpec, staging_dir: Path) -> Path:
        files_dir = staging_dir / FILES_DIR
        if files_dir.exists():
            shutil.rmtree(files_dir)
        files_dir.mkdir(parents=True)
        for located in self.locator.locate_all(app.files):
            target = files_dir / located.managed.staged_name
            if located.is_dir:
                shutil.copytree(located.source, target)
            else:
                shutil.copy2(located.source, target)
            logger.debug("Staged %s -> %s", located.source, target)
        return files_dir

    def stage(
        self,
        app: ApplicationSpec,
        staging_dir: Path,
        build: bool = True,
        files: bool = True,
        info: Optional[str] = None,
    ) -> StagedPayload:
        staging_dir.mkdir(parents=True, exist_ok=True)
        artifact = self.builder.build(app, staging_dir / app.name) if build else None
        files_dir = self.stage_files(app, staging_dir) if files else None
        return StagedPayload(
            root=staging_dir,
            build_info=info if info is not None else default_build_info(app),
            artifact=artifact,
            files_dir=files_dir,
        )
