"""Configuration module for ssh_orchestrator."""

from ssh_orchestrator.config.settings import Settings

__all__ = ["Settings"]
