"""Tests for the Config aggregate."""

from pathlib import Path

from netprobe.config import Config, Settings
from netprobe.models import SSHHost


def _config(tmp_path: Path, ssh_user: str | None = None) -> Config:
    ssh_config = tmp_path / "ssh_config"
    ssh_config.write_text(
        "Host web01\n    HostName 10.0.0.20\n    Port 2222\n"
        "Host db01\n    HostName 10.0.0.30\n    User postgres\n"
    )
    settings = Settings(ssh_config_path=ssh_config, known_hosts="none", ssh_user=ssh_user)
    return Config.from_settings(settings)


def test_resolve_alias(tmp_path: Path) -> None:
    """Aliases from ssh config resolve to their hostname and port."""
    host = _config(tmp_path).resolve_host("web01")

    assert host == SSHHost(name="web01", hostname="10.0.0.20", port=2222)


def test_resolve_unknown_host_is_verbatim(tmp_path: Path) -> None:
    host = _config(tmp_path, ssh_user="ops").resolve_host("10.0.0.5")

    assert host.name == "10.0.0.5"
    assert host.hostname == "10.0.0.5"
    assert host.port == 22
    assert host.user == "ops"


def test_default_user_fills_alias_without_user(tmp_path: Path) -> None:
    config = _config(tmp_path, ssh_user="ops")

    assert config.resolve_host("web01").user == "ops"
    assert config.resolve_host("db01").user == "postgres"


def test_host_key_settings(tmp_path: Path) -> None:
    config = _config(tmp_path)

    assert config.known_hosts_path is None
    assert config.strict_host_key_checking is True
