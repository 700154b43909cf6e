"""
Harp Exception Hierarchy

Architectural Intent:
- Single root exception for every failure the deploy engine can report
- Fatal errors abort the run; RetentionError is the only one the
  orchestrator downgrades to a log line
- Each error carries optional context rendered on a second line
- one_line() flattens the same text for single-line console diagnostics
"""

from typing import Optional, Sequence


def one_line(text: str, separator: str = " | ") -> str:
    """Joins the non-blank lines of a diagnostic with separator."""
    return separator.join(line.strip() for line in text.splitlines() if line.strip())


class HarpError(Exception):
    """Base exception for all Harp errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message

    def one_line(self) -> str:
        return one_line(self.format_message())


class ConfigurationError(HarpError):
    """Raised when configuration is invalid, e.g. a malformed host address."""

    pass


class ManagedFileNotFoundError(ConfigurationError):
    """Raised when a managed file is absent from every local search path."""

    def __init__(self, path: str, search_paths: Sequence[str]):
        self.path = path
        self.search_paths = list(search_paths)
        super().__init__(
            f"failed to find {path}",
            f"Searched: {', '.join(self.search_paths) or '(no search paths)'}",
        )


class BuildError(HarpError):
    """Raised when the local build step fails."""

    pass


class TransferError(HarpError):
    """Raised when the bulk file transfer exits non-zero."""

    pass


class RemoteExecutionError(HarpError):
    """Raised when a remote command fails or the SSH channel breaks."""

    def __init__(
        self,
        host: str,
        command: str,
        output: str = "",
        cause: Optional[BaseException] = None,
        exit_code: Optional[int] = None,
    ):
        self.host = host
        self.command = command
        self.output = output
        self.cause = cause
        self.exit_code = exit_code
        reason = str(cause) if cause else f"exit status {exit_code}"
        summary = command.strip().splitlines()[0] if command.strip() else command
        super().__init__(
            f"remote command failed on {host}: {reason}",
            f"Command: {summary}\nOutput: {output.strip()}",
        )


class RetentionError(HarpError):
    """Raised when old releases could not be trimmed. Never fatal."""

    pass
