"""
Build Adapter

Architectural Intent:
- Infrastructure adapter implementing ArtifactBuilderPort with a configured
  local command (default: go build)
- Placeholders {output}, {import_path} and {name} are substituted per argument
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence
from harp.domain.entities.application import ApplicationSpec
from harp.domain.errors import BuildError
from harp.domain.ports.artifact_builder_port import ArtifactBuilderPort

logger = logging.getLogger(__name__)

DEFAULT_BUILD_COMMAND = ("go", "build", "-o", "{output}", "{import_path}")


class CommandBuildAdapter(ArtifactBuilderPort):
    def __init__(
        self,
        command: Sequence[str] = DEFAULT_BUILD_COMMAND,
        env: Optional[dict[str, str]] = None,
        cwd: Optional[str] = None,
    ):
        self.command = tuple(command) or DEFAULT_BUILD_COMMAND
        self.env = dict(env or {})
        self.cwd = cwd

    def argv(self, app: ApplicationSpec, output: Path) -> list[str]:
        values = {"output": str(output), "import_path": app.import_path, "name": app.name}
        return [part.format(**values) for part in self.command]

    def build(self, app: ApplicationSpec, output: Path) -> Path:
        output.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.argv(app, output)
        logger.info("Building %s: %s", app.name, " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.cwd,
                env={**os.environ, **self.env} if self.env else None,
            )
        except FileNotFoundError as e:
            raise BuildError(f"build tool not found: {cmd[0]}") from e

        if result.returncode != 0:
            raise BuildError(
                f"failed to build {app.name}",
                (result.stderr or result.stdout).strip(),
            )
        if not output.exists():
            raise BuildError(
                f"build of {app.name} produced no artifact", f"Expected: {output}"
            )
        return output
