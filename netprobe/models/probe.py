"""Probe result data models."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class ProbeReport:
    """Raw output of the reachability probe, before the host is attached."""

    ping_succeeded: bool
    name_resolution_succeeded: bool
    resolved_addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProbeResult:
    """Connectivity diagnostic for one host that accepted a session.

    ``resolved_addresses`` keeps resolver order. It may be empty even when
    resolution succeeded if the resolver returned no addresses.
    """

    host: str
    ping_succeeded: bool
    name_resolution_succeeded: bool
    resolved_addresses: tuple[str, ...] = ()

    @classmethod
    def from_report(cls, host: str, report: ProbeReport) -> "ProbeResult":
        """Attach a host identifier to a probe report."""
        return cls(
            host=host,
            ping_succeeded=report.ping_succeeded,
            name_resolution_succeeded=report.name_resolution_succeeded,
            resolved_addresses=tuple(report.resolved_addresses),
        )

    @property
    def addresses_text(self) -> str:
        """Addresses joined the way they are rendered in output files."""
        return ";".join(self.resolved_addresses)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-friendly dict."""
        return {
            "host": self.host,
            "pingSucceeded": self.ping_succeeded,
            "nameResolutionSucceeded": self.name_resolution_succeeded,
            "resolvedAddresses": list(self.resolved_addresses),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ProbeResult":
        """Build a result from :meth:`to_dict` output.

        ``resolvedAddresses`` may be a list or a semicolon-joined string.

        Raises:
            ValueError: If ``host`` is missing, a flag is not a boolean, or
                addresses are not a list.
        """
        host = data.get("host")
        if not isinstance(host, str) or not host:
            raise ValueError(f"Record has no host: {data!r}")

        addresses = data.get("resolvedAddresses") or ()
        if isinstance(addresses, str):
            addresses = [a for a in addresses.split(";") if a]
        if not isinstance(addresses, (list, tuple)):
            raise ValueError(f"resolvedAddresses must be a list: {addresses!r}")

        flags = {}
        for key in ("pingSucceeded", "nameResolutionSucceeded"):
            value = data.get(key, False)
            # JSON "false" as a string must not read as True
            if not isinstance(value, bool):
                raise ValueError(f"{key} must be true or false: {value!r}")
            flags[key] = value

        return cls(
            host=host,
            ping_succeeded=flags["pingSucceeded"],
            name_resolution_succeeded=flags["nameResolutionSucceeded"],
            resolved_addresses=tuple(str(a) for a in addresses),
        )


class SkipReason(Enum):
    """Why a host produced no result."""

    SESSION_FAILED = "session_failed"
    PROBE_FAILED = "probe_failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ProbeSucceeded:
    """Host was probed and produced a result."""

    result: ProbeResult
    ok: bool = field(default=True, init=False)

    @property
    def host(self) -> str:
        return self.result.host


@dataclass(frozen=True)
class ProbeSkipped:
    """Host was skipped after a recoverable failure."""

    host: str
    reason: SkipReason
    error: str = ""
    ok: bool = field(default=False, init=False)


HostOutcome = ProbeSucceeded | ProbeSkipped
