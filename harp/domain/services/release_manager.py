"""
Release Manager

Architectural Intent:
- Allocates the run-wide release identifier exactly once (lock-guarded),
  so every host in a run archives under the same timestamp
- Archives the prior release before a new deploy overwrites it
- Trims old releases by count and, optionally, by age; trimming failures
  surface as RetentionError and never fail a deploy
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from harp.domain.entities.remote_host import RemoteHost
from harp.domain.errors import RemoteExecutionError, RetentionError
from harp.domain.value_objects.release import ReleaseContext, TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionPolicy:
    keep: int = 5
    max_age_days: int = 0

    def __post_init__(self) -> None:
        if self.keep < 1:
            raise ValueError(f"Retention must keep at least one release, got {self.keep}")
        if self.max_age_days < 0:
            raise ValueError("max_age_days cannot be negative")


class ReleaseManager:
    def __init__(
        self,
        policy: Optional[RetentionPolicy] = None,
        rollback_enabled: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.policy = policy or RetentionPolicy()
        self.rollback_enabled = rollback_enabled
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self._context: Optional[ReleaseContext] = None

    def allocate(self) -> ReleaseContext:
        with self._lock:
            if self._context is None:
                self._context = ReleaseContext(
                    timestamp=self._clock().strftime(TIMESTAMP_FORMAT),
                    rollback_enabled=self.rollback_enabled,
                )
                logger.info("Allocated release %s", self._context)
            return self._context

    def archive_prior_release(
        self, host: RemoteHost, save_release_script: str
    ) -> bool:
        """Runs the save-release step. Returns False when nothing was run."""
        if not save_release_script:
            logger.debug("%s: rollback disabled, skipping release archive", host)
            return False
        host.execute(save_release_script)
        return True

    def trim_command(self, host: RemoteHost) -> str:
        releases = host.layout.releases_dir
        command = (
            f"if [[ -d {releases} ]]; then\n"
            f"\tcd {releases}\n"
            f"\tls -1 | sort -r | tail -n +{self.policy.keep + 1} | xargs -r rm -rf\n"
        )
        if self.policy.max_age_days:
            command += (
                f"\tfind {releases} -mindepth 1 -maxdepth 1 -type d "
                f"-mtime +{self.policy.max_age_days} -exec rm -rf {{}} +\n"
            )
        command += f"\tcd {host.home}\nfi"
        return command

    def list_command(self, host: RemoteHost) -> str:
        return f"ls -1 {host.layout.releases_dir} 2> /dev/null || true"

    def list_releases(self, host: RemoteHost) -> list[str]:
        result = host.execute(self.list_command(host))
        return sorted(line for line in result.output.split() if line)

    def trim_old_releases(self, host: RemoteHost) -> None:
        if not self.rollback_enabled:
            return
        try:
            host.execute(self.trim_command(host))
        except RemoteExecutionError as e:
            raise RetentionError(
                f"failed to trim old releases on {host}", e.output.strip() or str(e.cause)
            ) from e
