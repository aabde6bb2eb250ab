"""SSH remote execution sessions.

Every connection opened here is closed exactly once by whoever opened it:
use :func:`remote_session` rather than pairing open/close by hand.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import asyncssh

if TYPE_CHECKING:
    from netprobe.models import SSHHost
    from netprobe.protocols import RemoteTransport

logger = logging.getLogger(__name__)


class SessionEstablishmentError(Exception):
    """Failed to open a remote session to a host."""

    def __init__(self, host_name: str, original_error: BaseException):
        """Initialize session error.

        Args:
            host_name: Host identifier as supplied by the caller
            original_error: Exception that caused the failure
        """
        self.host_name = host_name
        self.original_error = original_error
        super().__init__(f"Cannot connect to {host_name}: {original_error}")


class SSHTransport:
    """Opens and closes asyncssh connections, one per host."""

    def __init__(
        self,
        connect_timeout: float = 15,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            connect_timeout: Seconds allowed for the SSH handshake
            known_hosts: Path to known_hosts file, or None to disable verification
            strict_host_key_checking: Whether to reject unknown host keys
        """
        self.connect_timeout = connect_timeout
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking

        if self._known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED - vulnerable to MITM attacks. "
                "Set NETPROBE_KNOWN_HOSTS to a valid known_hosts file path."
            )

    async def _connect(
        self, host: "SSHHost", known_hosts: str | None
    ) -> asyncssh.SSHClientConnection:
        options: dict[str, Any] = {
            "port": host.port,
            "known_hosts": known_hosts,
            "connect_timeout": self.connect_timeout or None,
        }
        # Omitting these lets asyncssh fall back to its own defaults
        if host.user:
            options["username"] = host.user
        if host.identity_file:
            options["client_keys"] = [host.identity_file]
        return await asyncssh.connect(host.hostname, **options)

    async def open(self, host: "SSHHost") -> asyncssh.SSHClientConnection:
        """Open an SSH connection to the host.

        Raises:
            SessionEstablishmentError: On unreachable host, auth failure,
                timeout or rejected host key
        """
        logger.debug("Opening SSH session to %s (%s)", host.name, host.address)
        try:
            conn = await self._connect(host, self._known_hosts)
        except asyncssh.HostKeyNotVerifiable as e:
            if self._strict_host_key:
                logger.debug(
                    "Host key for %s not in %s and strict checking is on",
                    host.name,
                    self._known_hosts,
                )
                raise SessionEstablishmentError(host.name, e) from e

            logger.warning(
                "Host key not verified for %s (strict mode disabled): %s",
                host.name,
                e,
            )
            try:
                conn = await self._connect(host, None)
            except (asyncssh.Error, OSError, ValueError) as retry_error:
                raise SessionEstablishmentError(host.name, retry_error) from retry_error
        except (asyncssh.Error, OSError, ValueError) as e:
            # Unreadable or encrypted client keys raise ValueError subclasses
            raise SessionEstablishmentError(host.name, e) from e

        logger.debug("SSH session established to %s", host.name)
        return conn

    async def close(self, handle: asyncssh.SSHClientConnection, host_name: str) -> None:
        """Close a connection. Failures are logged, never raised."""
        try:
            handle.close()
            await handle.wait_closed()
        except Exception as e:
            logger.warning("Failed to close session to %s: %s", host_name, e)
        else:
            logger.debug("Closed SSH session to %s", host_name)


@asynccontextmanager
async def remote_session(
    transport: "RemoteTransport", host: "SSHHost"
) -> AsyncIterator[Any]:
    """Open a session and close it on every exit path.

    Close failures are logged and swallowed so a finished probe keeps its
    result.

    Raises:
        SessionEstablishmentError: If the session cannot be opened. Nothing
            is closed in that case.
    """
    handle = await transport.open(host)
    try:
        yield handle
    finally:
        try:
            await transport.close(handle, host.name)
        except Exception as e:
            logger.warning("Failed to close session to %s: %s", host.name, e)
