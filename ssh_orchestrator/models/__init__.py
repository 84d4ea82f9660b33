"""Data models for ssh_orchestrator."""

from ssh_orchestrator.models.command import CommandOutput, CommandStatus, SSHCommand
from ssh_orchestrator.models.instance import Instance
from ssh_orchestrator.models.result import InstanceResult

__all__ = [
    "CommandOutput",
    "CommandStatus",
    "Instance",
    "InstanceResult",
    "SSHCommand",
]
