"""Application configuration.

Delegates to specialized components:
- Settings: Environment variables
- SSHConfigParser: Reads ~/.ssh/config aliases
- HostKeyVerifier: Manages known_hosts
"""

import logging
from dataclasses import dataclass, replace

from netprobe.config.host_keys import HostKeyVerifier
from netprobe.config.parser import SSHConfigParser
from netprobe.config.settings import Settings
from netprobe.models import SSHHost

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings from the environment, SSH config and known_hosts.
    """

    settings: Settings
    parser: SSHConfigParser
    host_keys: HostKeyVerifier

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment.

        Raises:
            FileNotFoundError: If strict host key checking is on and the
                known_hosts file does not exist.
        """
        settings = Settings.from_env()
        return cls.from_settings(settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Config":
        """Create config around an existing Settings instance."""
        return cls(
            settings=settings,
            parser=SSHConfigParser(settings.ssh_config_path),
            host_keys=HostKeyVerifier(
                known_hosts_path=settings.known_hosts,
                strict_checking=settings.strict_host_key_checking,
            ),
        )

    def resolve_host(self, name: str) -> SSHHost:
        """Map a host identifier to an SSH target.

        SSH config aliases win; anything else is used verbatim as the
        hostname on port 22 with the configured default user.
        """
        alias = self.parser.lookup(name)
        if alias is not None:
            if alias.user is None and self.settings.ssh_user:
                return replace(alias, user=self.settings.ssh_user)
            return alias
        return SSHHost(name=name, hostname=name, user=self.settings.ssh_user)

    @property
    def known_hosts_path(self) -> str | None:
        """Get known_hosts path from verifier."""
        return self.host_keys.get_known_hosts_path()

    @property
    def strict_host_key_checking(self) -> bool:
        """Get strict checking setting."""
        return self.host_keys.strict_checking
