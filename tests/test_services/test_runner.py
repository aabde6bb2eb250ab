"""Tests for the per-host probe runner."""

import asyncio
import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest

from netprobe.models import (
    ProbeReport,
    ProbeResult,
    ProbeSkipped,
    ProbeSucceeded,
    SkipReason,
    SSHHost,
)
from netprobe.protocols import ProbeService, RemoteTransport
from netprobe.services.probe import ProbeExecutionError
from netprobe.services.runner import ProbeRunner
from netprobe.services.session import SessionEstablishmentError, SSHTransport

CLOUDFLARE = ProbeReport(
    ping_succeeded=True,
    name_resolution_succeeded=True,
    resolved_addresses=("1.1.1.1", "1.0.0.1"),
)


class FakeTransport:
    """Transport that records every open and close, in order."""

    def __init__(self, unreachable: set[str] | None = None, open_delay: float = 0) -> None:
        self.unreachable = unreachable or set()
        self.open_delay = open_delay
        self.events: list[tuple[str, str]] = []

    async def open(self, host: SSHHost) -> Any:
        self.events.append(("open", host.name))
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if host.name in self.unreachable:
            raise SessionEstablishmentError(host.name, OSError("Connection refused"))
        return {"host": host.name}

    async def close(self, handle: Any, host_name: str) -> None:
        self.events.append(("close", host_name))

    def closes(self, host_name: str) -> int:
        return self.events.count(("close", host_name))


class FakeProbe:
    """Probe returning a fixed report, failing or hanging for chosen hosts."""

    def __init__(
        self,
        report: ProbeReport = CLOUDFLARE,
        failing: set[str] | None = None,
        hanging: set[str] | None = None,
    ) -> None:
        self.report = report
        self.failing = failing or set()
        self.hanging = hanging or set()
        self.calls: list[str] = []

    async def run(self, handle: Any, host_name: str) -> ProbeReport:
        self.calls.append(host_name)
        if host_name in self.failing:
            raise ProbeExecutionError(host_name, "transport dropped")
        if host_name in self.hanging:
            await asyncio.sleep(10)
        return self.report


def test_fakes_satisfy_protocols() -> None:
    assert isinstance(FakeTransport(), RemoteTransport)
    assert isinstance(FakeProbe(), ProbeService)


@pytest.mark.asyncio
async def test_single_host_success() -> None:
    """A reachable host produces one result with the probe fields."""
    runner = ProbeRunner(FakeTransport(), FakeProbe())

    outcomes = await runner.run(["10.0.0.5"])

    assert outcomes == [
        ProbeSucceeded(
            ProbeResult(
                host="10.0.0.5",
                ping_succeeded=True,
                name_resolution_succeeded=True,
                resolved_addresses=("1.1.1.1", "1.0.0.1"),
            )
        )
    ]
    assert runner.results(outcomes)[0].addresses_text == "1.1.1.1;1.0.0.1"


@pytest.mark.asyncio
async def test_unreachable_host_is_skipped_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Session failure yields no result and a failure notice naming the host."""
    transport = FakeTransport(unreachable={"badhost"})
    runner = ProbeRunner(transport, FakeProbe())

    outcomes = await runner.run(["badhost"])

    assert runner.results(outcomes) == []
    assert outcomes == [
        ProbeSkipped("badhost", SkipReason.SESSION_FAILED, "Connection refused")
    ]
    assert "badhost" in caplog.text
    assert transport.closes("badhost") == 0


@pytest.mark.asyncio
async def test_failure_does_not_block_other_hosts() -> None:
    """Results keep input order and skip only the failing host."""
    transport = FakeTransport(unreachable={"down"})
    runner = ProbeRunner(transport, FakeProbe())

    outcomes = await runner.run(["up1", "down", "up2"])

    assert [r.host for r in runner.results(outcomes)] == ["up1", "up2"]
    assert [o.ok for o in outcomes] == [True, False, True]


@pytest.mark.asyncio
async def test_second_host_failing() -> None:
    runner = ProbeRunner(FakeTransport(unreachable={"b"}), FakeProbe())

    outcomes = await runner.run(["a", "b"])

    results = runner.results(outcomes)
    assert len(results) == 1
    assert results[0].host == "a"


@pytest.mark.asyncio
async def test_probe_failure_still_closes_session() -> None:
    """Teardown runs once even when the probe call errors."""
    transport = FakeTransport()
    runner = ProbeRunner(transport, FakeProbe(failing={"flaky"}))

    outcomes = await runner.run(["flaky", "ok"])

    assert outcomes[0] == ProbeSkipped("flaky", SkipReason.PROBE_FAILED, "transport dropped")
    assert outcomes[1].ok
    assert transport.closes("flaky") == 1
    assert transport.closes("ok") == 1


@pytest.mark.asyncio
async def test_bad_client_key_skips_host_and_batch_continues() -> None:
    """An unreadable identity file is an auth failure for that host only."""
    good_conn = MagicMock()
    good_conn.wait_closed = AsyncMock()

    async def connect(hostname: str, **kwargs: Any) -> Any:
        if hostname == "badkey":
            raise asyncssh.KeyImportError("Invalid private key")
        return good_conn

    hosts = {
        "badkey": SSHHost(name="badkey", hostname="badkey", identity_file="/keys/broken"),
        "other": SSHHost(name="other", hostname="other"),
    }
    runner = ProbeRunner(
        SSHTransport(known_hosts=None), FakeProbe(), resolve_host=hosts.__getitem__
    )

    with patch("asyncssh.connect", side_effect=connect):
        outcomes = await runner.run(["badkey", "other"])

    assert outcomes[0] == ProbeSkipped(
        "badkey", SkipReason.SESSION_FAILED, "Invalid private key"
    )
    assert outcomes[1].ok
    good_conn.close.assert_called_once()


@pytest.mark.asyncio
async def test_close_error_keeps_result_and_batch_continues(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A transport whose close raises loses neither the result nor later hosts."""

    class ResettingTransport(FakeTransport):
        async def close(self, handle: Any, host_name: str) -> None:
            await super().close(handle, host_name)
            raise ConnectionResetError("socket already gone")

    transport = ResettingTransport()
    runner = ProbeRunner(transport, FakeProbe())

    outcomes = await runner.run(["a", "b"])

    assert [r.host for r in runner.results(outcomes)] == ["a", "b"]
    assert transport.closes("a") == 1
    assert transport.closes("b") == 1
    assert "Failed to close session to a" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_probe_error_closes_session_and_propagates() -> None:
    class BrokenProbe:
        async def run(self, handle: Any, host_name: str) -> ProbeReport:
            raise RuntimeError("bug")

    transport = FakeTransport()
    runner = ProbeRunner(transport, BrokenProbe())

    with pytest.raises(RuntimeError):
        await runner.run(["a"])

    assert transport.closes("a") == 1


@pytest.mark.asyncio
async def test_hosts_processed_sequentially() -> None:
    """Host i is closed before host i+1 is opened."""
    transport = FakeTransport()
    runner = ProbeRunner(transport, FakeProbe())

    await runner.run(["a", "b", "a"])

    assert transport.events == [
        ("open", "a"),
        ("close", "a"),
        ("open", "b"),
        ("close", "b"),
        ("open", "a"),
        ("close", "a"),
    ]


@pytest.mark.asyncio
async def test_duplicates_processed_independently() -> None:
    runner = ProbeRunner(FakeTransport(), FakeProbe())

    outcomes = await runner.run(["a", "a"])

    assert [r.host for r in runner.results(outcomes)] == ["a", "a"]


@pytest.mark.asyncio
async def test_timeout_skips_host_and_closes_session() -> None:
    transport = FakeTransport()
    runner = ProbeRunner(transport, FakeProbe(hanging={"slow"}), host_timeout=0.05)

    outcomes = await runner.run(["slow", "fast"])

    assert isinstance(outcomes[0], ProbeSkipped)
    assert outcomes[0].reason is SkipReason.TIMED_OUT
    assert outcomes[1].ok
    assert transport.closes("slow") == 1


@pytest.mark.asyncio
async def test_timeout_during_open() -> None:
    transport = FakeTransport(open_delay=1)
    runner = ProbeRunner(transport, FakeProbe(), host_timeout=0.05)

    outcomes = await runner.run(["slow"])

    assert outcomes[0].reason is SkipReason.TIMED_OUT  # type: ignore[union-attr]
    assert transport.closes("slow") == 0


def test_zero_timeout_disables_limit() -> None:
    runner = ProbeRunner(FakeTransport(), FakeProbe(), host_timeout=0)
    assert runner.host_timeout is None


@pytest.mark.asyncio
async def test_cancel_stops_before_next_host(caplog: pytest.LogCaptureFixture) -> None:
    """Cancellation takes effect at the next host boundary."""
    cancel = asyncio.Event()
    transport = FakeTransport()

    class CancellingProbe(FakeProbe):
        async def run(self, handle: Any, host_name: str) -> ProbeReport:
            cancel.set()
            return await super().run(handle, host_name)

    runner = ProbeRunner(transport, CancellingProbe())

    outcomes = await runner.run(["a", "b", "c"], cancel)

    assert [o.host for o in outcomes] == ["a"]
    assert outcomes[0].ok
    assert transport.closes("a") == 1
    assert ("open", "b") not in transport.events
    assert "2 of 3 host(s) not probed" in caplog.text


@pytest.mark.asyncio
async def test_resolve_host_maps_identifier() -> None:
    """The result keeps the identifier as given, not the resolved hostname."""
    seen: list[SSHHost] = []

    class SpyTransport(FakeTransport):
        async def open(self, host: SSHHost) -> Any:
            seen.append(host)
            return await super().open(host)

    runner = ProbeRunner(
        SpyTransport(),
        FakeProbe(),
        resolve_host=lambda name: SSHHost(name=name, hostname="10.9.9.9", port=2200),
    )

    outcomes = await runner.run(["web01"])

    assert seen[0].hostname == "10.9.9.9"
    assert runner.results(outcomes)[0].host == "web01"


@pytest.mark.asyncio
async def test_iter_results_streams_successes() -> None:
    runner = ProbeRunner(FakeTransport(unreachable={"b"}), FakeProbe())

    hosts = [r.host async for r in runner.iter_results(["a", "b", "c"])]

    assert hosts == ["a", "c"]


@pytest.mark.asyncio
async def test_run_logs_summary(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="netprobe")
    runner = ProbeRunner(FakeTransport(unreachable={"b"}), FakeProbe())

    await runner.run(["a", "b"])

    assert "1/2 hosts probed successfully" in caplog.text
