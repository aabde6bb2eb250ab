"""SSH-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SSHHost:
    """SSH connection target for one host identifier."""

    name: str
    hostname: str
    user: str | None = None
    port: int = 22
    identity_file: str | None = None

    @property
    def address(self) -> str:
        """Human readable ``user@hostname:port`` form for log lines."""
        prefix = f"{self.user}@" if self.user else ""
        return f"{prefix}{self.hostname}:{self.port}"
