"""Tests for the remote reachability probe."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import asyncssh
import pytest

from netprobe.services.probe import (
    BEGIN_MARKER,
    END_MARKER,
    PROBE_TARGET,
    ProbeExecutionError,
    RemoteReachabilityProbe,
    build_probe_command,
    parse_probe_output,
)


def probe_output(*lines: str) -> str:
    return "\n".join(["motd noise", BEGIN_MARKER, *lines, END_MARKER, ""])


def make_handle(stdout: object = "", stderr: object = "", exit_status: int = 0) -> MagicMock:
    handle = MagicMock()
    handle.run = AsyncMock(
        return_value=SimpleNamespace(stdout=stdout, stderr=stderr, exit_status=exit_status)
    )
    return handle


def test_target_is_cloudflare_name() -> None:
    assert PROBE_TARGET == "one.one.one.one"


def test_build_probe_command() -> None:
    """Command runs under sh and probes the target."""
    command = build_probe_command(ping_timeout=3)

    assert command.startswith("sh -c ")
    assert "one.one.one.one" in command
    assert "ping -c 1 -W 3" in command
    assert "getent ahosts" in command


def test_build_probe_command_quotes_target() -> None:
    command = build_probe_command(target="bad; rm -rf /")
    assert "t='\"'\"'bad; rm -rf /'\"'\"'" in command


def test_parse_success() -> None:
    """Addresses keep resolver order and drop repeats."""
    output = probe_output(
        "PING=0",
        "RESOLVE=0",
        "ADDR=1.1.1.1",
        "ADDR=1.1.1.1",
        "ADDR=1.0.0.1",
        "ADDR=2606:4700:4700::1111",
        "ADDR=1.0.0.1",
    )

    report = parse_probe_output(output)

    assert report.ping_succeeded is True
    assert report.name_resolution_succeeded is True
    assert report.resolved_addresses == ("1.1.1.1", "1.0.0.1", "2606:4700:4700::1111")


def test_parse_failures() -> None:
    report = parse_probe_output(probe_output("PING=1", "RESOLVE=2"))

    assert report.ping_succeeded is False
    assert report.name_resolution_succeeded is False
    assert report.resolved_addresses == ()


def test_parse_resolution_without_addresses() -> None:
    """Resolution may succeed with no addresses; that is a valid report."""
    report = parse_probe_output(probe_output("PING=0", "RESOLVE=0"))

    assert report.name_resolution_succeeded is True
    assert report.resolved_addresses == ()


@pytest.mark.parametrize(
    "output",
    [
        "",
        "PING=0\nRESOLVE=0\n",
        probe_output("PING=0"),
        probe_output("PING=x", "RESOLVE=0"),
    ],
)
def test_parse_malformed(output: str) -> None:
    with pytest.raises(ValueError):
        parse_probe_output(output)


@pytest.mark.asyncio
async def test_run_returns_report() -> None:
    handle = make_handle(stdout=probe_output("PING=0", "RESOLVE=0", "ADDR=1.1.1.1"))
    probe = RemoteReachabilityProbe(command_timeout=20)

    report = await probe.run(handle, "web01")

    assert report.resolved_addresses == ("1.1.1.1",)
    handle.run.assert_awaited_once_with(probe.command, check=False, timeout=20)


@pytest.mark.asyncio
async def test_run_decodes_bytes() -> None:
    handle = make_handle(stdout=probe_output("PING=1", "RESOLVE=0").encode())

    report = await RemoteReachabilityProbe().run(handle, "web01")

    assert report.ping_succeeded is False


@pytest.mark.asyncio
async def test_run_transport_error() -> None:
    """A dropped connection mid-probe is a probe execution failure."""
    handle = MagicMock()
    handle.run = AsyncMock(side_effect=asyncssh.ConnectionLost("connection lost"))

    with pytest.raises(ProbeExecutionError) as exc_info:
        await RemoteReachabilityProbe().run(handle, "web01")

    assert exc_info.value.host_name == "web01"
    assert "connection lost" in exc_info.value.detail


@pytest.mark.asyncio
async def test_run_malformed_output_includes_stderr() -> None:
    handle = make_handle(stdout="", stderr="sh: not found\n", exit_status=127)

    with pytest.raises(ProbeExecutionError) as exc_info:
        await RemoteReachabilityProbe().run(handle, "web01")

    assert "exit status 127" in exc_info.value.detail
    assert "sh: not found" in exc_info.value.detail
