"""Data models for netprobe."""

from netprobe.models.output import (
    DEFAULT_FILE_NAME,
    InvalidOutputModeError,
    OutputConfig,
    OutputMode,
)
from netprobe.models.probe import (
    HostOutcome,
    ProbeReport,
    ProbeResult,
    ProbeSkipped,
    ProbeSucceeded,
    SkipReason,
)
from netprobe.models.ssh import SSHHost

__all__ = [
    "DEFAULT_FILE_NAME",
    "HostOutcome",
    "InvalidOutputModeError",
    "OutputConfig",
    "OutputMode",
    "ProbeReport",
    "ProbeResult",
    "ProbeSkipped",
    "ProbeSucceeded",
    "SSHHost",
    "SkipReason",
]
