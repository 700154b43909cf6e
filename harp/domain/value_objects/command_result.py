from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one remote command: exit status and merged stdout/stderr.
    """
    command: str
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stripped(self) -> str:
        return self.output.strip()
