"""Services for ssh_orchestrator."""

from ssh_orchestrator.services.connection import SSHConnection
from ssh_orchestrator.services.manager import SSHConnectionManager

__all__ = [
    "SSHConnection",
    "SSHConnectionManager",
]
