"""Envelope decoding: the first of two parsing passes."""

from __future__ import annotations

from pydantic import ValidationError

from amrcollect.exceptions import AmrDecodeError
from amrcollect.models.envelope import LogMessage


def decode_envelope(line: str | bytes) -> LogMessage:
    """Parse one rtlamr JSON line, leaving the payload undecoded.

    Raises
    ------
    AmrDecodeError
        The line is not JSON or lacks ``Time``, ``Type`` or ``Message``.
    """
    try:
        return LogMessage.model_validate_json(line)
    except ValidationError as exc:
        text = line.decode("utf-8", "replace") if isinstance(line, bytes) else line
        raise AmrDecodeError(f"json unmarshal: {exc}", line=text.strip()) from exc
