"""Colorful console logging for orchestration runs."""

import logging
import os
import re
import sys

from ssh_orchestrator.config.settings import Settings

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "ssh_orchestrator.services.manager": COLORS["bright_cyan"],
    "ssh_orchestrator.services.connection": COLORS["bright_magenta"],
    "ssh_orchestrator.metrics": COLORS["bright_blue"],
    "ssh_orchestrator.config": COLORS["green"],
    "default": COLORS["white"],
}

ADDRESS_PATTERN = re.compile(r"([\w\-]+@)?([\w\.\-]+:\d+)")
ATTEMPT_PATTERN = re.compile(r"(\d+/\d+)")


class ColorfulFormatter(logging.Formatter):
    """Log formatter with level and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_level(self, record: logging.LogRecord) -> str:
        """Format log level with color and fixed width."""
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name
        if name.startswith("ssh_orchestrator."):
            name = name[len("ssh_orchestrator.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors."""
        timestamp = self.formatTime(record, "%H:%M:%S")
        timestamp = self._colorize(f"{timestamp}.{int(record.msecs):03d}", COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight host addresses and attempt counters."""
        if not self.use_colors:
            return message

        message = ADDRESS_PATTERN.sub(
            f"{COLORS['bright_magenta']}\\g<0>{COLORS['reset']}", message
        )
        if "Attempt" in message:
            message = ATTEMPT_PATTERN.sub(
                f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message, count=1
            )
        return message


def configure_logging(settings: Settings | None = None) -> None:
    """Configure colorful logging for the ssh_orchestrator package.

    Args:
        settings: Settings providing log_level, read from the environment if None
    """
    if settings is None:
        settings = Settings.from_env()
    log_level = settings.log_level.upper()
    use_colors = os.getenv("SSH_ORCH_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    package_logger = logging.getLogger("ssh_orchestrator")
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    # asyncssh logs every channel open at INFO
    logging.getLogger("asyncssh").setLevel(logging.WARNING)
    logging.getLogger("asyncssh.sftp").setLevel(logging.WARNING)
