"""Application settings from environment variables.

Centralized environment variable parsing, resolved once at startup.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from netprobe.models import DEFAULT_FILE_NAME, OutputConfig, OutputMode

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Output sink
    output_dir: Path = field(default_factory=Path.home)
    file_name: str = field(default=DEFAULT_FILE_NAME)

    # Timeouts (seconds)
    host_timeout: int = field(default=60)
    connect_timeout: int = field(default=15)
    ping_timeout: int = field(default=2)

    # SSH
    ssh_user: str | None = field(default=None)
    ssh_config_path: Path | None = field(default=None)
    known_hosts: str | None = field(default=None)
    strict_host_key_checking: bool = field(default=True)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from NETPROBE_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        output_dir = os.getenv("NETPROBE_OUTPUT_DIR", "").strip()
        ssh_config = os.getenv("NETPROBE_SSH_CONFIG", "").strip()

        return cls(
            output_dir=Path(os.path.expanduser(output_dir)) if output_dir else Path.home(),
            file_name=os.getenv("NETPROBE_FILE_NAME", "").strip() or DEFAULT_FILE_NAME,
            host_timeout=cls._get_int("NETPROBE_HOST_TIMEOUT", 60),
            connect_timeout=cls._get_int("NETPROBE_CONNECT_TIMEOUT", 15),
            ping_timeout=cls._get_int("NETPROBE_PING_TIMEOUT", 2),
            ssh_user=os.getenv("NETPROBE_SSH_USER") or None,
            ssh_config_path=Path(os.path.expanduser(ssh_config)) if ssh_config else None,
            known_hosts=os.getenv("NETPROBE_KNOWN_HOSTS") or None,
            strict_host_key_checking=cls._get_bool("NETPROBE_STRICT_HOST_KEY_CHECKING", True),
            log_level=os.getenv("NETPROBE_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("NETPROBE_LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get a non-negative integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None or not value.strip():
            return default

        try:
            parsed = int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

        if parsed < 0:
            logger.warning("Negative value for %s: %d, using default %d", key, parsed, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    def output_config(
        self,
        mode: "str | OutputMode" = OutputMode.HOST,
        path: str | Path | None = None,
        file_name: str | None = None,
    ) -> OutputConfig:
        """Build the sink configuration, filling defaults from settings.

        Raises:
            InvalidOutputModeError: If ``mode`` is not a known mode.
        """
        return OutputConfig(
            mode=OutputMode.parse(mode),
            path=self.output_dir if path is None else Path(os.path.expanduser(path)),
            file_name=file_name or self.file_name,
        )
