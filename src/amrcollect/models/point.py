"""Normalized time-series points."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class MessageClass(StrEnum):
    """Value of the ``msg_type`` tag."""

    CUMULATIVE = "cumulative"
    DIFFERENTIAL = "differential"


@dataclass(frozen=True)
class Point:
    """One normalized record handed to a sink."""

    time: datetime
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, int] = field(default_factory=dict)
