"""Per-instance results of fan-out operations."""

from dataclasses import dataclass

from ssh_orchestrator.errors import SSHError
from ssh_orchestrator.models.command import CommandOutput
from ssh_orchestrator.models.instance import Instance


@dataclass
class InstanceResult:
    """Outcome of executing a command on a single instance."""

    instance: Instance
    attempts: int
    output: CommandOutput | None = None
    error: SSHError | None = None

    @property
    def success(self) -> bool:
        """Check if the command eventually succeeded."""
        return self.error is None and self.output is not None
