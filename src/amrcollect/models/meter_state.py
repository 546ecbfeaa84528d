"""Meter identity and the per-meter state kept for deduplication."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MeterIdentity:
    """A meter as observed under one protocol tag.

    The same device heard as both IDM and NetIDM is two identities.
    """

    endpoint_id: int
    endpoint_type: int
    protocol: str


@dataclass(frozen=True)
class MeterState:
    """The most recent interval a meter reported and when it began."""

    time: datetime
    interval: int
