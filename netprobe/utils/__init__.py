"""Utilities for netprobe."""

from netprobe.utils.console import ConsoleFormatter
from netprobe.utils.launch import open_artifact
from netprobe.utils.shell import quote_arg

__all__ = [
    "ConsoleFormatter",
    "open_artifact",
    "quote_arg",
]
