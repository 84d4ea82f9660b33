"""Utility functions for ssh_orchestrator."""

from ssh_orchestrator.utils.console import ColorfulFormatter, configure_logging
from ssh_orchestrator.utils.shell import quote_path

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "quote_path",
]
