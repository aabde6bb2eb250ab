"""Per-host probe pipeline.

Hosts are processed strictly in input order, one at a time: the session for
host i is closed before host i+1 is opened. A failing host yields a
``ProbeSkipped`` value and never stops the batch.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from netprobe.models import (
    HostOutcome,
    ProbeResult,
    ProbeSkipped,
    ProbeSucceeded,
    SkipReason,
    SSHHost,
)
from netprobe.services.probe import ProbeExecutionError
from netprobe.services.session import SessionEstablishmentError, remote_session

if TYPE_CHECKING:
    from netprobe.protocols import ProbeService, RemoteTransport

logger = logging.getLogger(__name__)


def _default_resolve(name: str) -> SSHHost:
    return SSHHost(name=name, hostname=name)


class ProbeRunner:
    """Runs the reachability probe on each host of a batch."""

    def __init__(
        self,
        transport: "RemoteTransport",
        probe: "ProbeService",
        resolve_host: Callable[[str], SSHHost] | None = None,
        host_timeout: float | None = 60,
    ) -> None:
        """Initialize the runner.

        Args:
            transport: Opens and closes remote sessions
            probe: Runs the probe inside an open session
            resolve_host: Maps a host identifier to an SSH target
                (default: use the identifier as the hostname)
            host_timeout: Seconds allowed per host for open, probe and
                close together; None or 0 disables the limit
        """
        self.transport = transport
        self.probe = probe
        self.resolve_host = resolve_host or _default_resolve
        self.host_timeout = host_timeout or None

    async def _probe(self, host: SSHHost) -> HostOutcome:
        try:
            async with remote_session(self.transport, host) as handle:
                report = await self.probe.run(handle, host.name)
        except SessionEstablishmentError as e:
            logger.error("Failed to connect to %s: %s", host.name, e.original_error)
            return ProbeSkipped(
                host=host.name,
                reason=SkipReason.SESSION_FAILED,
                error=str(e.original_error),
            )
        except ProbeExecutionError as e:
            logger.error("Probe failed on %s: %s", host.name, e.detail)
            return ProbeSkipped(
                host=host.name,
                reason=SkipReason.PROBE_FAILED,
                error=e.detail,
            )

        result = ProbeResult.from_report(host.name, report)
        logger.info(
            "Probe completed on %s (ping=%s, dns=%s, addresses=%s)",
            host.name,
            result.ping_succeeded,
            result.name_resolution_succeeded,
            result.addresses_text or "-",
        )
        return ProbeSucceeded(result)

    async def probe_host(self, name: str) -> HostOutcome:
        """Probe one host identifier.

        Returns:
            ProbeSucceeded with the result, or ProbeSkipped with the reason
            the host produced none
        """
        host = self.resolve_host(name)
        if self.host_timeout is None:
            return await self._probe(host)

        try:
            return await asyncio.wait_for(self._probe(host), timeout=self.host_timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out probing %s after %ss", name, self.host_timeout)
            return ProbeSkipped(
                host=name,
                reason=SkipReason.TIMED_OUT,
                error=f"timed out after {self.host_timeout}s",
            )

    async def iter_outcomes(
        self,
        hosts: Sequence[str],
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[HostOutcome]:
        """Yield one outcome per host, in input order.

        Args:
            hosts: Host identifiers; duplicates are probed again
            cancel: When set, hosts not yet started are skipped. A host
                already in progress always finishes first.
        """
        for index, name in enumerate(hosts):
            if cancel is not None and cancel.is_set():
                logger.warning(
                    "Batch cancelled, %d of %d host(s) not probed",
                    len(hosts) - index,
                    len(hosts),
                )
                return
            yield await self.probe_host(name)

    async def iter_results(
        self,
        hosts: Sequence[str],
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[ProbeResult]:
        """Yield only the successful results, in input order."""
        async for outcome in self.iter_outcomes(hosts, cancel):
            if isinstance(outcome, ProbeSucceeded):
                yield outcome.result

    async def run(
        self,
        hosts: Sequence[str],
        cancel: asyncio.Event | None = None,
    ) -> list[HostOutcome]:
        """Probe every host and collect the outcomes."""
        outcomes = [outcome async for outcome in self.iter_outcomes(hosts, cancel)]
        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        logger.info("%d/%d hosts probed successfully", succeeded, len(hosts))
        return outcomes

    @staticmethod
    def results(outcomes: Iterable[HostOutcome]) -> list[ProbeResult]:
        """Return the results of the successful outcomes, order kept."""
        return [
            outcome.result for outcome in outcomes if isinstance(outcome, ProbeSucceeded)
        ]
