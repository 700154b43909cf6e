"""
Domain Services Package

Architectural Intent:
- Stateless or run-scoped domain logic operating on hosts and releases
- Script composition, release bookkeeping and file reconciliation
"""

from harp.domain.services.file_locator import (
    ManagedFileLocator,
    LocatedFile,
    LocalFile,
)
from harp.domain.services.script_composer import (
    ScriptComposer,
    ScriptBundle,
    ScriptData,
    escape_heredoc,
    heredoc_write_command,
)
from harp.domain.services.release_manager import ReleaseManager, RetentionPolicy
from harp.domain.services.file_reconciler import FileReconciler

__all__ = [
    "ManagedFileLocator",
    "LocatedFile",
    "LocalFile",
    "ScriptComposer",
    "ScriptBundle",
    "ScriptData",
    "escape_heredoc",
    "heredoc_write_command",
    "ReleaseManager",
    "RetentionPolicy",
    "FileReconciler",
]
