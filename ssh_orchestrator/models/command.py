"""Command execution data models."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, NamedTuple

from ssh_orchestrator.utils.shell import quote_path


class CommandStatus(Enum):
    """Status of a command running in the background."""

    RUNNING = "running"
    TERMINATED = "terminated"


class CommandOutput(NamedTuple):
    """Captured output of a remote command."""

    stdout: str
    stderr: str


@dataclass(frozen=True)
class SSHCommand:
    """Command to execute on every target instance.

    The shell command is parametrized by the instance index. Commands
    running in the background are identified by a unique id, which is
    also the name of the tmux session wrapping them.
    """

    command: Callable[[int], str]
    background: str | None = None
    path: str | None = None
    log_file: str | None = None

    @classmethod
    def constant(cls, command: str) -> "SSHCommand":
        """Create a command rendering to the same string on every instance."""
        return cls(command=lambda _index: command)

    def run_background(self, job_id: str) -> "SSHCommand":
        """Run the command detached, identified by job_id."""
        return replace(self, background=job_id)

    def with_execute_from_path(self, path: str) -> "SSHCommand":
        """Execute the command from the given directory."""
        return replace(self, path=path)

    def with_log_file(self, log_file: str) -> "SSHCommand":
        """Redirect stdout and stderr to log_file (output stays visible)."""
        return replace(self, log_file=log_file)

    def stringify(self, index: int) -> str:
        """Render the shell command for the instance at index.

        Redirection wraps the base command, the tmux session wraps the
        redirection and the directory change is always outermost.

        Args:
            index: Ordinal index of the target instance

        Returns:
            Shell command string
        """
        command = self.command(index)
        if self.log_file is not None:
            command = f"{command} |& tee {quote_path(self.log_file)}"
        if self.background is not None:
            command = f'tmux new -d -s "{self.background}" "{command}"'
        if self.path is not None:
            command = f"(cd {quote_path(self.path)} && {command})"
        return command

    def status(self, listing: str) -> CommandStatus:
        """Derive the background status from a tmux session listing.

        Commands not running in the background are always terminated.
        """
        if self.background is not None and self.background in listing:
            return CommandStatus.RUNNING
        return CommandStatus.TERMINATED
