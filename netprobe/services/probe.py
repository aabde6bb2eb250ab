"""Remote reachability probe.

Runs one POSIX shell snippet over an open SSH connection. The snippet pings
the target once, resolves it with getent, and prints tagged lines between
markers so the result can be parsed without guessing at tool output formats:

    __NETPROBE_BEGIN__
    PING=0
    RESOLVE=0
    ADDR=1.1.1.1
    ADDR=2606:4700:4700::1111
    __NETPROBE_END__
"""

import logging

import asyncssh

from netprobe.models import ProbeReport
from netprobe.utils.shell import quote_arg

logger = logging.getLogger(__name__)

PROBE_TARGET = "one.one.one.one"

BEGIN_MARKER = "__NETPROBE_BEGIN__"
END_MARKER = "__NETPROBE_END__"

_PROBE_SCRIPT = """\
t={target}
echo {begin}
if command -v ping >/dev/null 2>&1; then
  ping -c 1 -W {wait} "$t" >/dev/null 2>&1
  echo "PING=$?"
else
  echo "PING=127"
fi
if command -v getent >/dev/null 2>&1; then
  out=$(getent ahosts "$t" 2>/dev/null)
  echo "RESOLVE=$?"
  printf '%s\\n' "$out" | while read -r addr rest; do
    [ -n "$addr" ] && echo "ADDR=$addr"
  done
else
  echo "RESOLVE=127"
fi
echo {end}
"""


class ProbeExecutionError(Exception):
    """The probe call itself failed on an open session."""

    def __init__(self, host_name: str, detail: str):
        self.host_name = host_name
        self.detail = detail
        super().__init__(f"Probe failed on {host_name}: {detail}")


def build_probe_command(target: str = PROBE_TARGET, ping_timeout: int = 2) -> str:
    """Return the shell command that probes ``target`` from the remote host."""
    script = _PROBE_SCRIPT.format(
        target=quote_arg(target),
        wait=max(int(ping_timeout), 1),
        begin=BEGIN_MARKER,
        end=END_MARKER,
    )
    # Run under sh so the remote login shell does not matter
    return f"sh -c {quote_arg(script)}"


def parse_probe_output(output: str) -> ProbeReport:
    """Parse the tagged probe output into a report.

    Addresses keep resolver order with duplicates removed; getent lists each
    address once per socket type.

    Raises:
        ValueError: If markers or status lines are missing or malformed.
    """
    lines = [line.strip() for line in output.splitlines()]
    try:
        start = lines.index(BEGIN_MARKER)
        end = lines.index(END_MARKER, start + 1)
    except ValueError:
        raise ValueError("probe output markers not found") from None

    statuses: dict[str, int] = {}
    addresses: list[str] = []
    for line in lines[start + 1 : end]:
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key == "ADDR":
            if value and value not in addresses:
                addresses.append(value)
        elif key in ("PING", "RESOLVE"):
            try:
                statuses[key] = int(value)
            except ValueError:
                raise ValueError(f"bad {key} status: {value!r}") from None

    missing = [key for key in ("PING", "RESOLVE") if key not in statuses]
    if missing:
        raise ValueError(f"probe output missing {', '.join(missing)}")

    resolved = statuses["RESOLVE"] == 0
    return ProbeReport(
        ping_succeeded=statuses["PING"] == 0,
        name_resolution_succeeded=resolved,
        resolved_addresses=tuple(addresses) if resolved else (),
    )


class RemoteReachabilityProbe:
    """Probe service that pings and resolves a fixed name from the remote side."""

    def __init__(
        self,
        target: str = PROBE_TARGET,
        ping_timeout: int = 2,
        command_timeout: float | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            target: DNS name to ping and resolve
            ping_timeout: Seconds the remote ping waits for a reply
            command_timeout: Seconds allowed for the whole remote command,
                or None for no limit
        """
        self.target = target
        self.command = build_probe_command(target, ping_timeout)
        self.command_timeout = command_timeout

    async def run(self, handle: asyncssh.SSHClientConnection, host_name: str) -> ProbeReport:
        """Run the probe over ``handle``.

        Raises:
            ProbeExecutionError: If the remote call errors or its output
                cannot be parsed
        """
        logger.debug("Probing %s from %s", self.target, host_name)
        try:
            result = await handle.run(
                self.command, check=False, timeout=self.command_timeout
            )
        except (asyncssh.Error, asyncssh.ProcessError, OSError) as e:
            raise ProbeExecutionError(host_name, str(e) or type(e).__name__) from e

        stdout = result.stdout
        if stdout is None:
            output = ""
        elif isinstance(stdout, bytes):
            output = stdout.decode("utf-8", errors="replace")
        else:
            output = stdout

        try:
            report = parse_probe_output(output)
        except ValueError as e:
            stderr = result.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            detail = f"{e} (exit status {result.exit_status})"
            if stderr:
                detail += f": {stderr.strip()}"
            raise ProbeExecutionError(host_name, detail) from e

        logger.debug(
            "Probe on %s: ping=%s resolve=%s addresses=%d",
            host_name,
            report.ping_succeeded,
            report.name_resolution_succeeded,
            len(report.resolved_addresses),
        )
        return report
