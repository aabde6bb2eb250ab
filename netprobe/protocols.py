"""Protocol interfaces for the two external collaborators.

The runner depends on these shapes, not on asyncssh, so tests and other
transports can stand in for the SSH implementation:

    class FakeTransport:
        async def open(self, host):
            return handle

        async def close(self, handle, host_name):
            pass

    runner = ProbeRunner(transport=FakeTransport(), probe=my_probe)
"""

from typing import Any, Protocol, runtime_checkable

from netprobe.models import ProbeReport, SSHHost


@runtime_checkable
class RemoteTransport(Protocol):
    """Opens and closes remote execution sessions."""

    async def open(self, host: SSHHost) -> Any:
        """Open a session bound to ``host``.

        Raises:
            SessionEstablishmentError: If the session cannot be established
        """
        ...

    async def close(self, handle: Any, host_name: str) -> None:
        """Close a session opened by :meth:`open`.

        Note:
            Should not raise. :func:`~netprobe.services.session.remote_session`
            logs and swallows anything that does escape.
        """
        ...


@runtime_checkable
class ProbeService(Protocol):
    """Runs the reachability probe inside an open session."""

    async def run(self, handle: Any, host_name: str) -> ProbeReport:
        """Probe the fixed target from the remote side of ``handle``.

        Raises:
            ProbeExecutionError: If the probe call itself fails
        """
        ...


__all__ = [
    "ProbeService",
    "RemoteTransport",
]
