"""Configuration module for netprobe.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- Settings: Environment variable configuration
- SSHConfigParser: Parses ~/.ssh/config files
- HostKeyVerifier: Manages SSH host key verification
"""

from netprobe.config.host_keys import HostKeyVerifier
from netprobe.config.main import Config
from netprobe.config.parser import SSHConfigParser
from netprobe.config.settings import Settings

__all__ = ["Config", "HostKeyVerifier", "SSHConfigParser", "Settings"]
