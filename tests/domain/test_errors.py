"""Tests for the Harp exception hierarchy."""

from harp.domain.errors import (
    ConfigurationError,
    RemoteExecutionError,
    TransferError,
    one_line,
)


class TestOneLine:
    def test_remote_failure_names_command_and_output(self):
        error = RemoteExecutionError(
            "deploy@example.com:22",
            "bash /home/deploy/harp/web/restart.sh\n",
            output="nohup: failed to run command\n",
            exit_code=126,
        )
        assert error.one_line() == (
            "remote command failed on deploy@example.com:22: exit status 126"
            " | Context: Command: bash /home/deploy/harp/web/restart.sh"
            " | Output: nohup: failed to run command"
        )

    def test_transfer_diagnostic_kept(self):
        error = TransferError("failed to sync to deploy@example.com:22", "rsync error: code 23\n")
        assert error.one_line() == (
            "failed to sync to deploy@example.com:22 | Context: rsync error: code 23"
        )

    def test_without_context(self):
        assert ConfigurationError("app.name is required").one_line() == "app.name is required"

    def test_blank_lines_dropped(self):
        assert one_line("first\n\n  second  \n") == "first | second"
