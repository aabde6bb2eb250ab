"""Dependency injection container for netprobe."""

from dataclasses import dataclass

from netprobe.config import Config
from netprobe.models import OutputConfig
from netprobe.services.probe import RemoteReachabilityProbe
from netprobe.services.runner import ProbeRunner
from netprobe.services.session import SSHTransport
from netprobe.services.sink import Opener, ResultSink
from netprobe.utils.launch import open_artifact


@dataclass
class Dependencies:
    """Container for the transport, probe and runner built from one config.

    Example:
        deps = Dependencies.create()
        outcomes = await deps.runner.run(["web01", "10.0.0.5"])
    """

    config: Config
    transport: SSHTransport
    probe: RemoteReachabilityProbe
    runner: ProbeRunner

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies from the environment.

        Raises:
            FileNotFoundError: If strict host key checking is on and the
                known_hosts file does not exist.
        """
        return cls.from_config(Config.from_env())

    @classmethod
    def from_config(cls, config: Config, host_timeout: float | None = None) -> "Dependencies":
        """Create dependencies with custom configuration.

        Args:
            config: Config instance
            host_timeout: Overrides the configured per-host timeout
        """
        settings = config.settings
        transport = SSHTransport(
            connect_timeout=settings.connect_timeout,
            known_hosts=config.known_hosts_path,
            strict_host_key_checking=config.strict_host_key_checking,
        )
        probe = RemoteReachabilityProbe(ping_timeout=settings.ping_timeout)
        runner = ProbeRunner(
            transport=transport,
            probe=probe,
            resolve_host=config.resolve_host,
            host_timeout=settings.host_timeout if host_timeout is None else host_timeout,
        )
        return cls(config=config, transport=transport, probe=probe, runner=runner)

    def sink(self, output: OutputConfig, open_result: bool = True) -> ResultSink:
        """Create a sink for ``output``, optionally opening the finished file."""
        opener: Opener | None = open_artifact if open_result else None
        return ResultSink(output, opener=opener)
