"""Run shell commands across a fleet of benchmark instances over SSH."""

from ssh_orchestrator.errors import (
    CommandFailedError,
    OutputTimeoutError,
    SSHConnectionError,
    SSHError,
    SSHSessionError,
    WaitTimeoutError,
)
from ssh_orchestrator.models import (
    CommandOutput,
    CommandStatus,
    Instance,
    InstanceResult,
    SSHCommand,
)
from ssh_orchestrator.services import SSHConnection, SSHConnectionManager

__all__ = [
    "CommandFailedError",
    "CommandOutput",
    "CommandStatus",
    "OutputTimeoutError",
    "Instance",
    "InstanceResult",
    "SSHCommand",
    "SSHConnection",
    "SSHConnectionError",
    "SSHConnectionManager",
    "SSHError",
    "SSHSessionError",
    "WaitTimeoutError",
]
