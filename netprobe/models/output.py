"""Output sink configuration models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_FILE_NAME = "PipeResults"


class InvalidOutputModeError(ValueError):
    """Output mode value is not one of Host, CSV or Text."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid output mode {value!r}: expected one of Host, CSV, Text"
        )


class OutputMode(Enum):
    """Destination for probe results. Exactly one is active per run."""

    HOST = "Host"
    DELIMITED = "CSV"
    TEXT = "Text"

    @classmethod
    def parse(cls, value: "str | OutputMode") -> "OutputMode":
        """Parse a mode from its value or member name, case-insensitively.

        Raises:
            InvalidOutputModeError: If the value names no mode.
        """
        if isinstance(value, OutputMode):
            return value
        wanted = value.strip().lower()
        for mode in cls:
            if wanted in (mode.value.lower(), mode.name.lower()):
                return mode
        raise InvalidOutputModeError(value)

    @property
    def suffix(self) -> str | None:
        """File suffix written by this mode, or None for Host."""
        if self is OutputMode.DELIMITED:
            return ".csv"
        if self is OutputMode.TEXT:
            return ".txt"
        return None


@dataclass(frozen=True)
class OutputConfig:
    """Selected once per run: mode, directory and base file name."""

    mode: OutputMode = OutputMode.HOST
    path: Path = field(default_factory=Path.home)
    file_name: str = DEFAULT_FILE_NAME

    @property
    def destination(self) -> Path | None:
        """File written by file modes; None in Host mode."""
        suffix = self.mode.suffix
        if suffix is None:
            return None
        return Path(self.path) / f"{self.file_name}{suffix}"
