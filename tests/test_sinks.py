from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import aiohttp
import pytest

from amrcollect.config import CollectorConfig
from amrcollect.exceptions import AmrConfigError, AmrSinkError
from amrcollect.models.point import Point
from amrcollect.sinks import (
    DryRunSink,
    InfluxDBSink,
    build_ssl_context,
    create_sink,
    format_line_protocol,
    timestamp_ns,
)

POINT = Point(
    time=datetime(2026, 1, 1, tzinfo=UTC),
    tags={"protocol": "SCM+", "msg_type": "cumulative", "endpoint_type": "156", "endpoint_id": "1234"},
    fields={"consumption": 42},
)


def _config(**overrides: Any) -> CollectorConfig:
    values: dict[str, Any] = {
        "hostname": "https://influx.example.com:8086/",
        "token": "secret-token",
        "org": "home",
        "bucket": "meters",
        "measurement": "rtlamr",
    }
    values.update(overrides)
    return CollectorConfig(**values)


# ------------------------------------------------------------------
# Line protocol
# ------------------------------------------------------------------


def test_timestamp_ns() -> None:
    assert timestamp_ns(datetime(2026, 1, 1, tzinfo=UTC)) == 1_767_225_600_000_000_000
    assert timestamp_ns(datetime(1970, 1, 1, 0, 0, 0, 1, tzinfo=UTC)) == 1000


def test_format_line_protocol_sorts_tags() -> None:
    assert format_line_protocol("rtlamr", POINT) == (
        "rtlamr,endpoint_id=1234,endpoint_type=156,msg_type=cumulative,protocol=SCM+ "
        "consumption=42i 1767225600000000000"
    )


def test_format_line_protocol_escapes() -> None:
    point = Point(time=POINT.time, tags={"site name": "a b=c,d"}, fields={"consumption": 1, "leak_now": 0})

    assert format_line_protocol("my meas,x", point) == (
        "my\\ meas\\,x,site\\ name=a\\ b\\=c\\,d consumption=1i,leak_now=0i 1767225600000000000"
    )


# ------------------------------------------------------------------
# Dry run
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dry_run_sink_counts_points() -> None:
    sink = DryRunSink("rtlamr")

    await sink.write([POINT, POINT])
    await sink.write([])
    await sink.close()

    assert sink.points_seen == 2


def test_create_sink_dry_run() -> None:
    assert isinstance(create_sink(CollectorConfig(dry_run=True)), DryRunSink)


def test_create_sink_influxdb() -> None:
    assert isinstance(create_sink(_config()), InfluxDBSink)


# ------------------------------------------------------------------
# InfluxDB
# ------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status: int, text: str = "") -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        return None


class FakeSession:
    def __init__(self, status: int = 204, text: str = "", error: Exception | None = None) -> None:
        self.status = status
        self.text = text
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status, self.text)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_influxdb_write_posts_line_protocol() -> None:
    session = FakeSession()
    sink = InfluxDBSink(_config(), http_session=session)  # type: ignore[arg-type]

    await sink.write([POINT, POINT])

    assert len(session.calls) == 1
    url, kwargs = session.calls[0]
    assert url == "https://influx.example.com:8086/api/v2/write"
    assert kwargs["params"] == {"org": "home", "bucket": "meters", "precision": "ns"}
    assert kwargs["headers"]["Authorization"] == "Token secret-token"
    assert kwargs["ssl"] is True
    body = kwargs["data"].decode()
    assert body.count("\n") == 1
    assert body.startswith("rtlamr,endpoint_id=1234")


@pytest.mark.asyncio
async def test_influxdb_write_skips_empty_batches() -> None:
    session = FakeSession()
    sink = InfluxDBSink(_config(), http_session=session)  # type: ignore[arg-type]

    await sink.write([])

    assert session.calls == []


@pytest.mark.asyncio
async def test_influxdb_http_error_raises() -> None:
    session = FakeSession(status=401, text='{"code":"unauthorized"}')
    sink = InfluxDBSink(_config(), http_session=session)  # type: ignore[arg-type]

    with pytest.raises(AmrSinkError, match="HTTP 401") as excinfo:
        await sink.write([POINT])

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_influxdb_client_error_raises() -> None:
    session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))
    sink = InfluxDBSink(_config(), http_session=session)  # type: ignore[arg-type]

    with pytest.raises(AmrSinkError, match="connection refused"):
        await sink.write([POINT])


@pytest.mark.asyncio
async def test_influxdb_does_not_close_borrowed_session() -> None:
    session = FakeSession()
    sink = InfluxDBSink(_config(), http_session=session)  # type: ignore[arg-type]

    await sink.close()

    assert session.closed is False


def test_ssl_context_absent_without_certificate() -> None:
    assert build_ssl_context(_config()) is None


def test_ssl_context_missing_certificate_file(tmp_path: Any) -> None:
    config = _config(client_cert=str(tmp_path / "missing.pem"), client_key=str(tmp_path / "missing.key"))

    with pytest.raises(AmrConfigError, match="could not load client certificate"):
        build_ssl_context(config)
