"""Line-at-a-time collection pipeline."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from amrcollect.config import CollectorConfig
from amrcollect.exceptions import AmrDecodeError
from amrcollect.ingestion.decoders import build_points, decode_message, violates_strict_idm
from amrcollect.ingestion.envelope import decode_envelope
from amrcollect.models.point import Point
from amrcollect.sinks import PointSink
from amrcollect.state.store import MeterStore

_logger = logging.getLogger(__name__)


class Collector:
    """Decode, deduplicate and normalize rtlamr lines.

    The store must be preloaded (see :meth:`MeterStore.open`) before the
    first line is processed.
    """

    def __init__(self, config: CollectorConfig, store: MeterStore) -> None:
        self._config = config
        self._store = store

    def process(self, line: str | bytes) -> list[Point]:
        """Turn one input line into points.

        Malformed lines are logged and yield no points; they never raise.
        """
        if not line.strip():
            return []

        try:
            envelope = decode_envelope(line)
            message = decode_message(envelope)
        except AmrDecodeError as exc:
            _logger.warning("%s", exc)
            return []

        if message is None:
            _logger.debug("Unsupported message type %r, skipped", envelope.type)
            return []

        if self._config.strict_idm and violates_strict_idm(envelope.protocol, message):
            _logger.debug(
                "Strict IDM: dropped %s from endpoint type %d",
                envelope.type,
                message.endpoint_type,
            )
            return []

        try:
            return build_points(envelope, message, self._store)
        except AmrDecodeError as exc:
            _logger.warning("%s", exc)
            return []

    async def run(self, lines: Iterable[str | bytes], sink: PointSink) -> int:
        """Process every line and write its points before reading the next.

        Returns the number of points written. Sink errors propagate.
        """
        written = 0
        for line in lines:
            points = self.process(line)
            if not points:
                continue
            await sink.write(points)
            written += len(points)
        return written
