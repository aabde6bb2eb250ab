"""Command line driver.

    netprobe probe HOST [HOST ...]   probe hosts and render the results
    netprobe export                  render JSON-lines records from stdin or a file
    netprobe serve                   run the MCP server on stdio
"""

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import AsyncIterator, Iterator, Sequence
from typing import TextIO

from netprobe import __version__
from netprobe.config import Config, Settings
from netprobe.dependencies import Dependencies
from netprobe.models import (
    HostOutcome,
    OutputConfig,
    OutputMode,
    ProbeResult,
    ProbeSucceeded,
)
from netprobe.services.sink import ResultSink, SinkError, format_table
from netprobe.utils.console import ConsoleFormatter
from netprobe.utils.launch import open_artifact

logger = logging.getLogger("netprobe.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_RESULTS = 2
EXIT_INTERRUPTED = 130


def _quiet_third_party_loggers() -> None:
    """Reduce noise from third-party libraries."""
    for name in ("asyncssh", "fastmcp", "mcp", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    """Send netprobe logs to stderr through the console formatter."""
    level_name = "DEBUG" if verbose else settings.log_level
    use_colors = settings.log_colors and sys.stderr.isatty()

    package_logger = logging.getLogger("netprobe")
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    _quiet_third_party_loggers()


def output_mode(value: str) -> OutputMode:
    """argparse type for ``--mode``."""
    return OutputMode.parse(value)


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        type=output_mode,
        default=OutputMode.HOST,
        metavar="{Host,CSV,Text}",
        help="where to send results (default: Host)",
    )
    parser.add_argument("--path", help="output directory (default: home directory)")
    parser.add_argument("--file-name", help="output base file name (default: PipeResults)")
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="do not open the output file when finished",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="in Host mode, print JSON lines instead of a table",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="netprobe",
        description="Run connectivity diagnostics on remote hosts over SSH.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    probe = commands.add_parser(
        "probe", parents=[common], help="probe hosts and render the results"
    )
    probe.add_argument("hosts", nargs="+", metavar="HOST", help="host name, address or ssh alias")
    probe.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="seconds allowed per host, 0 for no limit",
    )
    probe.add_argument(
        "--fail-on-empty",
        action="store_true",
        help="exit with status 2 when no host produced a result",
    )
    _add_output_arguments(probe)

    export = commands.add_parser(
        "export", parents=[common], help="render JSON-lines records from a probe run"
    )
    export.add_argument(
        "--input",
        default=None,
        help="JSON-lines file, or - for stdin (default: stdin when piped)",
    )
    _add_output_arguments(export)

    commands.add_parser("serve", parents=[common], help="run the MCP server on stdio")
    return parser


def _output_config(settings: Settings, args: argparse.Namespace) -> OutputConfig:
    return settings.output_config(args.mode, args.path, args.file_name)


def _print_records(records: Sequence[ProbeResult], as_json: bool, stream: TextIO) -> None:
    if as_json:
        for record in records:
            stream.write(json.dumps(record.to_dict()) + "\n")
    else:
        stream.write(format_table(records))
    stream.flush()


@contextlib.contextmanager
def _cancel_on_interrupt(cancel: asyncio.Event) -> Iterator[None]:
    """First Ctrl-C stops the batch after the current host; a second one aborts."""
    loop = asyncio.get_running_loop()

    def interrupt() -> None:
        logger.warning("Interrupted, finishing the current host (Ctrl-C again to abort)")
        cancel.set()
        # Restores the default handler, so the next Ctrl-C raises KeyboardInterrupt
        loop.remove_signal_handler(signal.SIGINT)

    try:
        loop.add_signal_handler(signal.SIGINT, interrupt)
    except (NotImplementedError, RuntimeError):
        # No signal handlers here; KeyboardInterrupt still aborts the run
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)


async def run_probe(
    deps: Dependencies,
    hosts: Sequence[str],
    sink: ResultSink,
    cancel: asyncio.Event | None = None,
) -> tuple[list[HostOutcome], list[ProbeResult]]:
    """Probe ``hosts`` and stream successful results into ``sink``.

    Returns:
        All outcomes and the records the sink received, both in host order.

    Raises:
        SinkError: If the sink destination cannot be written.
    """
    outcomes: list[HostOutcome] = []

    async def results() -> AsyncIterator[ProbeResult]:
        async for outcome in deps.runner.iter_outcomes(hosts, cancel):
            outcomes.append(outcome)
            if isinstance(outcome, ProbeSucceeded):
                yield outcome.result

    written = await sink.write_async(results())
    logger.info("%d/%d hosts probed successfully", len(written), len(hosts))
    return outcomes, written


async def _probe_command(args: argparse.Namespace, settings: Settings) -> int:
    try:
        deps = Dependencies.from_config(
            Config.from_settings(settings), host_timeout=args.timeout
        )
    except FileNotFoundError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    output = _output_config(settings, args)
    sink = deps.sink(output, open_result=not args.no_open)
    cancel = asyncio.Event()

    try:
        with _cancel_on_interrupt(cancel):
            _, written = await run_probe(deps, args.hosts, sink, cancel)
    except SinkError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    if output.mode is OutputMode.HOST:
        _print_records(written, args.json, sys.stdout)

    if args.fail_on_empty and not written:
        return EXIT_NO_RESULTS
    return EXIT_OK


def read_records(stream: TextIO) -> list[ProbeResult]:
    """Parse JSON-lines records as printed by ``probe --json``.

    Raises:
        ValueError: If a line is not a valid record.
    """
    records = []
    for number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            records.append(ProbeResult.from_dict(data))
        except ValueError as e:
            raise ValueError(f"line {number}: {e}") from e
    return records


def _export_command(args: argparse.Namespace, settings: Settings) -> int:
    try:
        if args.input is None:
            records = [] if sys.stdin.isatty() else read_records(sys.stdin)
        elif args.input == "-":
            records = read_records(sys.stdin)
        else:
            with open(args.input, encoding="utf-8") as f:
                records = read_records(f)
    except OSError as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return EXIT_ERROR
    except ValueError as e:
        logger.error("Invalid input record, %s", e)
        return EXIT_ERROR

    output = _output_config(settings, args)
    sink = ResultSink(output, opener=None if args.no_open else open_artifact)
    try:
        written = sink.write(records)
    except SinkError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    if output.mode is OutputMode.HOST:
        _print_records(written, args.json, sys.stdout)
    return EXIT_OK


def _serve_command(settings: Settings) -> int:
    from netprobe.server import create_server

    try:
        deps = Dependencies.from_config(Config.from_settings(settings))
    except FileNotFoundError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    logger.info("Starting netprobe MCP server (transport=stdio)")
    create_server(deps).run(transport="stdio")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; returns the process exit status."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings, verbose=args.verbose)

    if args.command == "probe":
        try:
            return asyncio.run(_probe_command(args, settings))
        except KeyboardInterrupt:
            logger.error("Aborted")
            return EXIT_INTERRUPTED
    if args.command == "export":
        return _export_command(args, settings)
    return _serve_command(settings)
