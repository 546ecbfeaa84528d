"""Deterministic interval deduplication policy.

Each meter remembers a single slot: the interval index and start time of its
most recent message. A new message overlaps the previous one when one of its
readings lands on that slot at (nearly) the same time; that reading and every
older one in the message were already reported.

Only one slot is remembered, not all 256. This is exact while successive
messages overlap contiguously, which is how meters transmit. After a long
gap followed by retransmission of older intervals it can let duplicates
through, and a clock shift of exactly the threshold can hide new data. Both
are accepted approximations.

This module performs no I/O; the caller looks up and persists state.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from amrcollect._constants import DEDUP_THRESHOLD, INTERVAL_DURATION, INTERVAL_SLOTS
from amrcollect.models.meter_state import MeterState


@dataclass(frozen=True)
class IntervalReading:
    """One differential reading placed on the meter's interval timeline."""

    idx: int
    interval: int
    time: datetime
    usage: int


def interval_slot(current: int, idx: int) -> int:
    """Interval index ``idx`` readings before ``current``, wrapping at 256."""
    return (current - idx) % INTERVAL_SLOTS


def interval_time(anchor: datetime, idx: int) -> datetime:
    """Start time of the interval ``idx`` readings before the anchor."""
    return anchor - idx * INTERVAL_DURATION


def is_repeated_interval(
    previous: MeterState | None,
    reading: IntervalReading,
    *,
    threshold: timedelta = DEDUP_THRESHOLD,
) -> bool:
    """Whether ``reading`` is the interval ``previous`` already recorded."""
    if previous is None or reading.interval != previous.interval:
        return False
    return abs(previous.time - reading.time) < threshold


def place_readings(anchor: datetime, current: int, usages: Sequence[int]) -> list[IntervalReading]:
    """Assign an interval index and start time to each usage, newest first."""
    return [
        IntervalReading(
            idx=idx,
            interval=interval_slot(current, idx),
            time=interval_time(anchor, idx),
            usage=usage,
        )
        for idx, usage in enumerate(usages)
    ]


def select_new_readings(
    previous: MeterState | None,
    readings: Sequence[IntervalReading],
    *,
    threshold: timedelta = DEDUP_THRESHOLD,
) -> list[IntervalReading]:
    """Return the leading readings not covered by ``previous``.

    Readings must be ordered newest to oldest. The first repeated interval
    ends the selection: it and everything older are dropped. A matching
    slot outside the threshold is new data (clock drift or a missed
    report) and does not stop the selection.
    """
    selected: list[IntervalReading] = []
    for reading in readings:
        if is_repeated_interval(previous, reading, threshold=threshold):
            break
        selected.append(reading)
    return selected
