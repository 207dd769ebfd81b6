from __future__ import annotations

import ipaddress
import json
from pathlib import Path

import pytest

from server_watcher import main as main_module
from server_watcher.providers import PingStatus
from server_watcher.settings import build_watchers, load_settings


CONFIG_YAML = """
log_level: DEBUG
default_timeout_seconds: 3
servers:
  - name: web
    hostname: web.example
    port: 443
  - hostname: db.example
    port: 5432
    timeout_seconds: 1.5
    group: storage
  - hostname: router.example
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("SERVER_WATCHER_CONFIG", "SERVER_WATCHER_TIMEOUT", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "watchers.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    settings = load_settings(str(path))

    assert settings.log_level == "DEBUG"
    assert settings.default_timeout_seconds == 3
    assert [s.hostname for s in settings.servers] == ["web.example", "db.example", "router.example"]


def test_load_settings_env_overrides_and_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SERVER_WATCHER_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("SERVER_WATCHER_TIMEOUT", "7")

    settings = load_settings()

    assert settings.servers == []
    assert settings.log_level == "WARNING"
    assert settings.default_timeout_seconds == 7.0


def test_load_settings_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_settings(str(path))


def test_build_watchers_applies_timeouts_and_modes(tmp_path: Path) -> None:
    path = tmp_path / "watchers.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    web, db, router = build_watchers(load_settings(str(path)))

    assert web.name == "web"
    assert web.configuration.port == 443
    assert web.configuration.timeout_seconds == 3.0
    assert db.name == "db.example"
    assert db.group == "storage"
    assert db.configuration.timeout_seconds == 1.5
    assert router.configuration.port is None


def test_build_watchers_validates_entries(tmp_path: Path) -> None:
    path = tmp_path / "watchers.yaml"
    path.write_text("servers:\n  - hostname: https://web.example\n    port: 443\n", encoding="utf-8")
    with pytest.raises(ValueError, match="The hostname should not contain protocol"):
        build_watchers(load_settings(str(path)))


class _Resolver:
    async def resolve(self, hostname: str):
        return ipaddress.IPv4Address("10.0.0.5")


class _Dialer:
    def __init__(self, connected: bool) -> None:
        self._connected = connected

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self, address, port: int, timeout: float | None = None) -> None:
        return None

    async def close(self) -> None:
        return None


class _Prober:
    async def ping(self, address, timeout: float | None = None) -> PingStatus:
        return PingStatus.TIMED_OUT


def _use_fake_providers(monkeypatch: pytest.MonkeyPatch, *, connected: bool) -> None:
    monkeypatch.setattr("server_watcher.configuration.default_resolver_provider", lambda: _Resolver())
    monkeypatch.setattr("server_watcher.configuration.default_dialer_provider", lambda: _Dialer(connected))
    monkeypatch.setattr("server_watcher.configuration.default_prober_provider", lambda: _Prober())


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_main_single_host_success(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _use_fake_providers(monkeypatch, connected=True)

    code = main_module.main(["--host", "web.example", "--port", "443", "--timeout", "2", "--log-level", "WARNING"])

    assert code == 0
    results = _json_lines(capsys.readouterr().out)
    assert len(results) == 1
    assert results[0]["watcher_name"] == "web.example"
    assert results[0]["is_valid"] is True
    assert results[0]["ip_address"] == "10.0.0.5"


def test_main_config_with_unreachable_server(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _use_fake_providers(monkeypatch, connected=False)
    path = tmp_path / "watchers.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    code = main_module.main(["--config", str(path), "--log-level", "WARNING"])

    assert code == 1
    results = _json_lines(capsys.readouterr().out)
    assert [r["hostname"] for r in results] == ["web.example", "db.example", "router.example"]
    assert all(r["is_valid"] is False for r in results)
    assert results[2]["ping_status"] == "timed_out"


def test_main_invalid_host_and_setup_error(monkeypatch: pytest.MonkeyPatch) -> None:
    assert main_module.main(["--host", "http://web.example", "--log-level", "WARNING"]) == 2

    monkeypatch.setattr("server_watcher.configuration.default_dialer_provider", lambda: None)
    assert main_module.main(["--host", "web.example", "--port", "80", "--log-level", "WARNING"]) == 2


def test_main_malformed_yaml_exits_with_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("servers: [\n  - hostname: web.example\n", encoding="utf-8")

    assert main_module.main(["--config", str(path), "--log-level", "WARNING"]) == 2
