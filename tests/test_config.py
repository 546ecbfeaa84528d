from __future__ import annotations

import pytest

from amrcollect.config import CollectorConfig
from amrcollect.exceptions import AmrConfigError

_ALL_VARS = (
    "COLLECT_STRICTIDM",
    "COLLECT_INFLUXDB_DRYRUN",
    "COLLECT_INFLUXDB_HOSTNAME",
    "COLLECT_INFLUXDB_TOKEN",
    "COLLECT_INFLUXDB_ORG",
    "COLLECT_INFLUXDB_BUCKET",
    "COLLECT_INFLUXDB_MEASUREMENT",
    "COLLECT_INFLUXDB_CLIENT_CERT",
    "COLLECT_INFLUXDB_CLIENT_KEY",
    "COLLECT_STATE_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)


def _set_destination(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLLECT_INFLUXDB_HOSTNAME", "https://influx.example.com")
    monkeypatch.setenv("COLLECT_INFLUXDB_TOKEN", "token")
    monkeypatch.setenv("COLLECT_INFLUXDB_ORG", "home")
    monkeypatch.setenv("COLLECT_INFLUXDB_BUCKET", "meters")
    monkeypatch.setenv("COLLECT_INFLUXDB_MEASUREMENT", "rtlamr")


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_destination(monkeypatch)
    monkeypatch.setenv("COLLECT_STATE_PATH", "/var/lib/amrcollect/meters.db")

    config = CollectorConfig.from_env()

    assert config.hostname == "https://influx.example.com"
    assert config.bucket == "meters"
    assert config.measurement == "rtlamr"
    assert config.state_path == "/var/lib/amrcollect/meters.db"
    assert config.strict_idm is False
    assert config.dry_run is False


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_destination(monkeypatch)

    assert CollectorConfig.from_env().state_path == "meters.db"


def test_missing_destination_raises() -> None:
    with pytest.raises(AmrConfigError, match="COLLECT_INFLUXDB_HOSTNAME"):
        CollectorConfig.from_env()


def test_dry_run_needs_no_destination(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLLECT_INFLUXDB_DRYRUN", "")

    config = CollectorConfig.from_env()

    assert config.dry_run is True
    assert config.hostname == ""


@pytest.mark.parametrize(("value", "expected"), [("", True), ("1", True), ("yes", True), ("0", False), ("off", False)])
def test_strict_flag(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("COLLECT_STRICTIDM", value)

    assert CollectorConfig.from_env(dry_run=True).strict_idm is expected


def test_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_destination(monkeypatch)
    monkeypatch.setenv("COLLECT_STRICTIDM", "1")

    config = CollectorConfig.from_env(strict_idm=False, bucket="other")

    assert config.strict_idm is False
    assert config.bucket == "other"


def test_client_cert_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_destination(monkeypatch)
    monkeypatch.setenv("COLLECT_INFLUXDB_CLIENT_CERT", "/etc/ssl/client.pem")

    with pytest.raises(AmrConfigError, match="COLLECT_INFLUXDB_CLIENT_KEY"):
        CollectorConfig.from_env()
