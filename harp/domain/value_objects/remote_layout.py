"""
Remote Layout Value Object

Architectural Intent:
- Single source of truth for every path Harp touches on a host
- Derived purely from the resolved home directory, the app name and the
  optional log directory override
"""

from dataclasses import dataclass
from typing import Optional

APP_ROOT = "harp"
BUILD_INFO = "harp-build.info"
PID_FILE = "app.pid"
LOG_FILE = "app.log"
RELEASES_DIR = "releases"
FILES_DIR = "files"
SCRIPT_NAMES = ("kill", "restart", "rollback")


@dataclass(frozen=True)
class RemoteLayout:
    home: str
    app_name: str
    log_dir_override: Optional[str] = None

    @property
    def app_dir(self) -> str:
        # empty home keeps every path relative to the login directory
        root = f"{self.home}/{APP_ROOT}" if self.home else APP_ROOT
        return f"{root}/{self.app_name}"

    @property
    def files_dir(self) -> str:
        return f"{self.app_dir}/{FILES_DIR}"

    @property
    def artifact(self) -> str:
        return f"{self.app_dir}/{self.app_name}"

    @property
    def build_info(self) -> str:
        return f"{self.app_dir}/{BUILD_INFO}"

    @property
    def pid_file(self) -> str:
        return f"{self.app_dir}/{PID_FILE}"

    @property
    def log_dir(self) -> str:
        return self.log_dir_override or f"{self.app_dir}/log"

    @property
    def log_file(self) -> str:
        return f"{self.log_dir}/{LOG_FILE}"

    @property
    def releases_dir(self) -> str:
        return f"{self.app_dir}/{RELEASES_DIR}"

    def release_dir(self, timestamp: str) -> str:
        return f"{self.releases_dir}/{timestamp}"

    def script_path(self, name: str) -> str:
        if name not in SCRIPT_NAMES:
            raise ValueError(f"Unknown operational script: {name}")
        return f"{self.app_dir}/{name}.sh"
