"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Orchestration settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Credentials
    username: str = field(default="ubuntu")
    private_key_file: str = field(default="~/.ssh/id_rsa")
    known_hosts: str | None = field(default=None)

    # Connection policy
    timeout: float = field(default=30.0)
    retries: int = field(default=5)
    retry_delay: float = field(default=5.0)

    # Background job polling
    poll_interval: float = field(default=5.0)
    max_polls: int | None = field(default=None)

    # Logging
    log_level: str = field(default="INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from SSH_ORCH_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            username=os.getenv("SSH_ORCH_USERNAME", "ubuntu"),
            private_key_file=os.path.expanduser(
                os.getenv("SSH_ORCH_PRIVATE_KEY", "~/.ssh/id_rsa")
            ),
            known_hosts=os.getenv("SSH_ORCH_KNOWN_HOSTS") or None,
            timeout=cls._get_float("SSH_ORCH_TIMEOUT", 30.0),
            retries=cls._get_int("SSH_ORCH_RETRIES", 5),
            retry_delay=cls._get_float("SSH_ORCH_RETRY_DELAY", 5.0),
            poll_interval=cls._get_float("SSH_ORCH_POLL_INTERVAL", 5.0),
            max_polls=cls._get_optional_int("SSH_ORCH_MAX_POLLS"),
            log_level=os.getenv("SSH_ORCH_LOG_LEVEL", "INFO").upper(),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_optional_int(key: str) -> int | None:
        """Get integer from environment, None when unset or invalid."""
        value = os.getenv(key)
        if not value:
            return None

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, ignoring", key, value)
            return None

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid number for %s: %s, using default %s", key, value, default)
            return default
