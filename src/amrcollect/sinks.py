"""Point sinks.

A sink receives the points built from one input line at a time. The core
makes no assumption beyond "zero or more writes before exit"; batching,
retries and delivery belong to the sink.
"""

from __future__ import annotations

import logging
import ssl
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Protocol

import aiohttp

from amrcollect.config import CollectorConfig
from amrcollect.exceptions import AmrConfigError, AmrSinkError
from amrcollect.models.point import Point

_logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_WRITE_PATH = "/api/v2/write"


class PointSink(Protocol):
    """Structural sink interface used by the collector."""

    async def write(self, points: Sequence[Point]) -> None: ...

    async def close(self) -> None: ...


# ------------------------------------------------------------------
# InfluxDB line protocol
# ------------------------------------------------------------------


def _escape(value: str, specials: str) -> str:
    for char in specials:
        value = value.replace(char, f"\\{char}")
    return value


def _escape_measurement(value: str) -> str:
    return _escape(value, ", ")


def _escape_key(value: str) -> str:
    return _escape(value, ",= ")


def timestamp_ns(value: datetime) -> int:
    """Nanoseconds since the Unix epoch, exact to the microsecond."""
    return (value - _EPOCH) // timedelta(microseconds=1) * 1000


def format_line_protocol(measurement: str, point: Point) -> str:
    """Render ``point`` as one InfluxDB line protocol line.

    Tags are sorted by key; all fields are integers.
    """
    tags = "".join(f",{_escape_key(k)}={_escape_key(v)}" for k, v in sorted(point.tags.items()))
    fields = ",".join(f"{_escape_key(k)}={int(v)}i" for k, v in point.fields.items())
    return f"{_escape_measurement(measurement)}{tags} {fields} {timestamp_ns(point.time)}"


# ------------------------------------------------------------------
# Sinks
# ------------------------------------------------------------------


class DryRunSink:
    """Sink that writes nothing; points are logged at debug level."""

    def __init__(self, measurement: str = "") -> None:
        self._measurement = measurement or "dryrun"
        self.points_seen = 0

    async def write(self, points: Sequence[Point]) -> None:
        self.points_seen += len(points)
        for point in points:
            _logger.debug("dry run: %s", format_line_protocol(self._measurement, point))

    async def close(self) -> None:
        return None


def build_ssl_context(config: CollectorConfig) -> ssl.SSLContext | None:
    """Client-certificate TLS context, or ``None`` when no certificate is set."""
    if not config.client_cert:
        return None
    if not config.client_key:
        raise AmrConfigError("COLLECT_INFLUXDB_CLIENT_KEY is required with COLLECT_INFLUXDB_CLIENT_CERT")

    context = ssl.create_default_context()
    try:
        context.load_cert_chain(config.client_cert, config.client_key)
    except (OSError, ssl.SSLError) as exc:
        raise AmrConfigError(f"could not load client certificate: {exc}") from exc
    return context


class InfluxDBSink:
    """Blocking writer for the InfluxDB v2 HTTP API.

    Each :meth:`write` is one POST of all points from one input line and
    completes before the next line is read. Any failure raises
    :class:`AmrSinkError`.
    """

    def __init__(
        self,
        config: CollectorConfig,
        http_session: aiohttp.ClientSession | None = None,
        *,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self._url = config.hostname.rstrip("/") + _WRITE_PATH
        self._params = {"org": config.org, "bucket": config.bucket, "precision": "ns"}
        self._headers = {
            "Authorization": f"Token {config.token}",
            "Content-Type": "text/plain; charset=utf-8",
        }
        self._measurement = config.measurement
        self._ssl: ssl.SSLContext | bool = ssl_context if ssl_context is not None else True
        self._http = http_session
        self._owns_session = http_session is None

    def _session(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self._http

    async def write(self, points: Sequence[Point]) -> None:
        if not points:
            return

        body = "\n".join(format_line_protocol(self._measurement, point) for point in points)
        try:
            async with self._session().post(
                self._url,
                params=self._params,
                data=body.encode("utf-8"),
                headers=self._headers,
                ssl=self._ssl,
            ) as response:
                if response.status >= 300:
                    detail = await response.text()
                    raise AmrSinkError(
                        f"HTTP {response.status} from {self._url}: {detail.strip()}",
                        status_code=response.status,
                    )
        except aiohttp.ClientError as exc:
            raise AmrSinkError(f"write to {self._url} failed: {exc}") from exc

        _logger.debug("Wrote %d points to %s", len(points), self._url)

    async def close(self) -> None:
        if self._owns_session and self._http is not None:
            await self._http.close()
        self._http = None


def create_sink(config: CollectorConfig) -> PointSink:
    """Sink for ``config``: a no-op in dry run, InfluxDB otherwise."""
    if config.dry_run:
        return DryRunSink(config.measurement)
    _logger.info("connecting to %r", config.hostname)
    return InfluxDBSink(config, ssl_context=build_ssl_context(config))
