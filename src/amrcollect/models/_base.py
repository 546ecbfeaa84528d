"""Base model and shared field types for rtlamr messages.

rtlamr serializes every message with Go's ``encoding/json``: field names are
the Go struct names, integers are unsigned, byte slices are base64 strings
and times are RFC 3339 with nanosecond precision. The annotated types here
map those conventions onto Python values.
"""

from __future__ import annotations

import base64
import binascii
import re
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# Python datetimes stop at microseconds; Go emits up to nine fraction digits
# and drops trailing zeros, so shorter fractions such as ".5" also occur.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

Uint8 = Annotated[int, Field(ge=0, le=0xFF)]
Uint16 = Annotated[int, Field(ge=0, le=0xFFFF)]
Uint32 = Annotated[int, Field(ge=0, le=0xFFFF_FFFF)]


def parse_rtlamr_time(value: Any) -> datetime:
    """Convert an RFC 3339 timestamp to an aware datetime.

    Fractional seconds beyond microseconds are truncated. Naive values are
    taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(_FRACTION_RE.sub(r"\1", value.strip()))
    else:
        raise ValueError(f"expected RFC 3339 string, got {type(value).__name__}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def parse_byte_slice(value: Any) -> bytes:
    """Decode a Go ``[]byte``: base64 text, or a list of byte values."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64 byte slice: {exc}") from exc
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid byte list: {exc}") from exc
    raise ValueError(f"expected base64 string or byte list, got {type(value).__name__}")


RtlamrTime = Annotated[datetime, BeforeValidator(parse_rtlamr_time)]
"""Annotated type that accepts rtlamr's nanosecond RFC 3339 timestamps."""

ByteSlice = Annotated[bytes, BeforeValidator(parse_byte_slice)]
"""Annotated type for Go byte slices as rtlamr serializes them."""


class AmrBaseModel(BaseModel):
    """Base for rtlamr wire models.

    Models are immutable, ignore fields they do not use (checksums,
    preambles, tamper counters) and accept either the wire name or the
    Python field name.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
