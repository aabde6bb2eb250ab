"""SSH config file parser.

Reads ~/.ssh/config so host identifiers given on the command line can be
aliases with their own hostname, user, port and identity file.
"""

import logging
import os
import re
from pathlib import Path

from netprobe.models import SSHHost

logger = logging.getLogger(__name__)


class SSHConfigParser:
    """Parser for SSH config files.

    Only literal ``Host`` entries with a ``HostName`` become aliases.
    Values under ``Host *`` act as defaults for every entry.
    """

    def __init__(self, config_path: Path | str | None = None):
        """Initialize SSH config parser.

        Args:
            config_path: Path to SSH config file (default: ~/.ssh/config)
        """
        if config_path is None:
            config_path = Path.home() / ".ssh" / "config"

        self.config_path = Path(config_path)
        self._hosts: dict[str, SSHHost] | None = None

    def parse(self) -> dict[str, SSHHost]:
        """Parse SSH config and return host definitions.

        Returns:
            Dictionary mapping alias to SSHHost objects
        """
        if not self.config_path.exists():
            logger.debug("SSH config not found: %s", self.config_path)
            return {}

        try:
            content = self.config_path.read_text()
        except OSError as e:
            logger.warning("Cannot read SSH config %s: %s", self.config_path, e)
            return {}

        entries: dict[str, dict[str, str]] = {}
        global_defaults: dict[str, str] = {}
        current: list[str] = []

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            host_match = re.match(r"^Host\s+(.+)$", line, re.IGNORECASE)
            if host_match:
                current = host_match.group(1).split()
                for name in current:
                    if name != "*" and not self._is_pattern(name):
                        entries.setdefault(name, {})
                continue

            kv_match = re.match(r"^(\w+)\s*=?\s*(.+)$", line)
            if not kv_match or not current:
                continue

            key = kv_match.group(1).lower()
            value = kv_match.group(2).strip().strip('"')
            if key == "identityfile":
                value = os.path.expanduser(value)

            for name in current:
                if name == "*":
                    global_defaults.setdefault(key, value)
                elif name in entries:
                    # First value wins, as in ssh(1)
                    entries[name].setdefault(key, value)

        hosts: dict[str, SSHHost] = {}
        for name, data in entries.items():
            merged = {**global_defaults, **data}
            if not merged.get("hostname"):
                continue
            try:
                port = int(merged.get("port", "22"))
            except ValueError:
                port = 22
            hosts[name] = SSHHost(
                name=name,
                hostname=merged["hostname"],
                user=merged.get("user"),
                port=port,
                identity_file=merged.get("identityfile"),
            )

        logger.debug("Parsed %d hosts from %s", len(hosts), self.config_path)
        return hosts

    def lookup(self, name: str) -> SSHHost | None:
        """Return the alias entry for ``name``, parsing the file once."""
        if self._hosts is None:
            self._hosts = self.parse()
        return self._hosts.get(name)

    @staticmethod
    def _is_pattern(name: str) -> bool:
        return any(ch in name for ch in "*?!")
