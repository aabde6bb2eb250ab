"""Colorful console logging formatter."""

import logging
import re
from datetime import datetime

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

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

COMPONENT_COLORS = {
    "netprobe.services.runner": COLORS["bright_blue"],
    "netprobe.services.session": COLORS["bright_magenta"],
    "netprobe.services.probe": COLORS["bright_cyan"],
    "netprobe.services.sink": COLORS["cyan"],
    "netprobe.config": COLORS["green"],
    "default": COLORS["white"],
}

# (substring in lowercased message, marker, color); first match wins
MARKERS = [
    ("failed", "!!", COLORS["bright_red"]),
    ("timed out", "!!", COLORS["bright_red"]),
    ("cannot", "!!", COLORS["bright_red"]),
    ("cancelled", "!", COLORS["bright_yellow"]),
    ("completed", "OK", COLORS["bright_green"]),
    ("wrote", "OK", COLORS["bright_green"]),
    ("opening", "+", COLORS["bright_cyan"]),
    ("closed", "-", COLORS["bright_yellow"]),
]

_ADDRESS_PATTERN = re.compile(r"(\w+@[\w.\-]+:\d+)")


class ConsoleFormatter(logging.Formatter):
    """Log formatter with colored levels, components and status markers."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created).astimezone()
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, COLORS["white"])
        return self._colorize(f"{record.levelname:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("netprobe."):
            name = name[len("netprobe.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<16}", color)

    def _format_marker(self, record: logging.LogRecord) -> str:
        message = record.getMessage().lower()
        for needle, marker, color in MARKERS:
            if needle in message:
                return self._colorize(f"{marker:<3}", color)
        return "   "

    def _highlight_message(self, message: str) -> str:
        if not self.use_colors:
            return message
        return _ADDRESS_PATTERN.sub(
            f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as ``marker time | level | component | message``."""
        sep = self._colorize("|", COLORS["dim"])
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = (
            f"{self._format_marker(record)} {timestamp} {sep} "
            f"{self._format_level(record)} {sep} "
            f"{self._format_component(record)} {sep} {message}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
