"""Result sink: render probe results to the terminal, a CSV file or a text file.

File modes append, so repeated runs accumulate in one file. The CSV header is
written only when the file is new or empty.
"""

import csv
import logging
from collections.abc import AsyncIterable, Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Protocol

from netprobe.models import OutputConfig, OutputMode, ProbeResult
from netprobe.utils.launch import open_artifact

logger = logging.getLogger(__name__)

FIELDNAMES = ["Host", "PingSucceeded", "NameResolutionSucceeded", "ResolvedAddresses"]

Opener = Callable[[Path], None]


class SinkError(Exception):
    """The destination file could not be created or written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write results to {path}: {reason}")


def _row(record: ProbeResult) -> dict[str, str]:
    return {
        "Host": record.host,
        "PingSucceeded": str(record.ping_succeeded),
        "NameResolutionSucceeded": str(record.name_resolution_succeeded),
        "ResolvedAddresses": record.addresses_text,
    }


def format_list(records: Iterable[ProbeResult]) -> str:
    """Render records as aligned ``Key : Value`` blocks separated by blank lines."""
    width = max(len(name) for name in FIELDNAMES)
    blocks = []
    for record in records:
        row = _row(record)
        blocks.append("\n".join(f"{name:<{width}} : {row[name]}" for name in FIELDNAMES))
    return "".join(f"{block}\n\n" for block in blocks)


def format_table(records: Iterable[ProbeResult]) -> str:
    """Render records as a column-aligned table for the terminal."""
    rows = [_row(record) for record in records]
    if not rows:
        return ""
    widths = {
        name: max(len(name), *(len(row[name]) for row in rows)) for name in FIELDNAMES
    }
    header = "  ".join(f"{name:<{widths[name]}}" for name in FIELDNAMES)
    rule = "  ".join("-" * widths[name] for name in FIELDNAMES)
    lines = [header.rstrip(), rule]
    for row in rows:
        lines.append("  ".join(f"{row[name]:<{widths[name]}}" for name in FIELDNAMES).rstrip())
    return "\n".join(lines) + "\n"


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def load_delimited(path: Path | str) -> list[ProbeResult]:
    """Read back a CSV file written by the sink.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, newline="", encoding="utf-8") as f:
        return [
            ProbeResult(
                host=row["Host"],
                ping_succeeded=_parse_bool(row["PingSucceeded"]),
                name_resolution_succeeded=_parse_bool(row["NameResolutionSucceeded"]),
                resolved_addresses=tuple(
                    a for a in (row["ResolvedAddresses"] or "").split(";") if a
                ),
            )
            for row in csv.DictReader(f)
        ]


class _RecordWriter(Protocol):
    def write(self, record: ProbeResult) -> None: ...


class _DelimitedWriter:
    def __init__(self, stream: IO[str], write_header: bool) -> None:
        self._stream = stream
        self._writer = csv.DictWriter(stream, fieldnames=FIELDNAMES)
        if write_header:
            self._writer.writeheader()

    def write(self, record: ProbeResult) -> None:
        self._writer.writerow(_row(record))
        self._stream.flush()


class _TextWriter:
    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    def write(self, record: ProbeResult) -> None:
        self._stream.write(format_list([record]))
        self._stream.flush()


class ResultSink:
    """Renders a result sequence to the one destination chosen by the config."""

    def __init__(self, config: OutputConfig, opener: Opener | None = open_artifact) -> None:
        """Initialize the sink.

        Args:
            config: Output mode, directory and base file name
            opener: Called once with the finished file in file modes;
                None disables it
        """
        self.config = config
        self.opener = opener

    @property
    def mode(self) -> OutputMode:
        return self.config.mode

    @property
    def destination(self) -> Path | None:
        return self.config.destination

    def write(self, records: Iterable[ProbeResult]) -> list[ProbeResult]:
        """Render every record, then open the file in file modes.

        Returns:
            The records, in order. In Host mode this is the whole effect.

        Raises:
            SinkError: If the destination cannot be created or written.
        """
        if self.mode is OutputMode.HOST:
            return list(records)

        written: list[ProbeResult] = []
        with self._open_writer() as writer:
            for record in records:
                self._write_record(writer, record)
                written.append(record)
        self._finish(len(written))
        return written

    async def write_async(self, records: AsyncIterable[ProbeResult]) -> list[ProbeResult]:
        """Like :meth:`write`, for results that arrive while hosts are probed."""
        if self.mode is OutputMode.HOST:
            return [record async for record in records]

        written: list[ProbeResult] = []
        with self._open_writer() as writer:
            async for record in records:
                self._write_record(writer, record)
                written.append(record)
        self._finish(len(written))
        return written

    @contextmanager
    def _open_writer(self) -> Iterator[_RecordWriter]:
        path = self.destination
        assert path is not None

        try:
            is_new = not path.exists() or path.stat().st_size == 0
            stream = open(path, "a", newline="", encoding="utf-8")
        except OSError as e:
            raise SinkError(path, e.strerror or str(e)) from e

        logger.debug("Appending %s results to %s", self.mode.value, path)
        with stream:
            writer: _RecordWriter
            if self.mode is OutputMode.DELIMITED:
                try:
                    writer = _DelimitedWriter(stream, write_header=is_new)
                except OSError as e:
                    raise SinkError(path, e.strerror or str(e)) from e
            else:
                writer = _TextWriter(stream)
            yield writer

    def _write_record(self, writer: _RecordWriter, record: ProbeResult) -> None:
        try:
            writer.write(record)
        except OSError as e:
            path = self.destination
            assert path is not None
            raise SinkError(path, e.strerror or str(e)) from e

    def _finish(self, count: int) -> None:
        path = self.destination
        assert path is not None
        logger.info("Wrote %d result(s) to %s", count, path)

        if self.opener is None:
            return
        try:
            self.opener(path)
        except OSError as e:
            logger.warning("Could not open %s: %s", path, e)
