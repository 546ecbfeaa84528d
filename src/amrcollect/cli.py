"""Command line entry point: rtlamr JSON on stdin, points to InfluxDB."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable, Sequence
from typing import Any

from amrcollect import __version__
from amrcollect.collector import Collector
from amrcollect.config import CollectorConfig
from amrcollect.exceptions import AmrConfigError, AmrSinkError, AmrStateStoreError
from amrcollect.sinks import PointSink, create_sink
from amrcollect.state.store import MeterStore

_logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SINK_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amrcollect",
        description="Read rtlamr JSON messages from stdin and write them to InfluxDB.",
    )
    parser.add_argument("--state", help="Meter state database (default: $COLLECT_STATE_PATH or meters.db)")
    parser.add_argument("--strict", action="store_true", help="Drop IDM from type 8 and NetIDM from type 7 endpoints")
    parser.add_argument("--dry-run", action="store_true", help="Decode and deduplicate without writing")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def _collect(collector: Collector, sink: PointSink, lines: Iterable[str | bytes]) -> int:
    try:
        return await collector.run(lines, sink)
    finally:
        await sink.close()


def main(argv: Sequence[str] | None = None, stdin: Iterable[str | bytes] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d: %(message)s",
        datefmt="%H:%M:%S",
    )

    overrides: dict[str, Any] = {}
    if args.state:
        overrides["state_path"] = args.state
    if args.strict:
        overrides["strict_idm"] = True
    if args.dry_run:
        overrides["dry_run"] = True

    try:
        config = CollectorConfig.from_env(**overrides)
        sink = create_sink(config)
    except AmrConfigError as exc:
        _logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    try:
        store = MeterStore.open(config.state_path)
    except AmrStateStoreError as exc:
        _logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    with store:
        collector = Collector(config, store)
        # Raw bytes: a line that is not UTF-8 is rejected by the decoder, not the reader.
        lines = stdin if stdin is not None else sys.stdin.buffer
        try:
            written = asyncio.run(_collect(collector, sink, lines))
        except AmrSinkError as exc:
            _logger.error("%s", exc)
            return EXIT_SINK_ERROR

    _logger.info("end of input, %d points written", written)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
