"""Services for netprobe."""

from netprobe.services.probe import (
    PROBE_TARGET,
    ProbeExecutionError,
    RemoteReachabilityProbe,
    build_probe_command,
    parse_probe_output,
)
from netprobe.services.runner import ProbeRunner
from netprobe.services.session import (
    SessionEstablishmentError,
    SSHTransport,
    remote_session,
)
from netprobe.services.sink import (
    ResultSink,
    SinkError,
    format_list,
    format_table,
    load_delimited,
)

__all__ = [
    "PROBE_TARGET",
    "ProbeExecutionError",
    "ProbeRunner",
    "RemoteReachabilityProbe",
    "ResultSink",
    "SSHTransport",
    "SessionEstablishmentError",
    "SinkError",
    "build_probe_command",
    "format_list",
    "format_table",
    "load_delimited",
    "parse_probe_output",
    "remote_session",
]
