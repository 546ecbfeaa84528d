"""The rtlamr log envelope wrapping every decoded message."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from amrcollect.models._base import AmrBaseModel, RtlamrTime


class ProtocolType(StrEnum):
    """Message types rtlamr emits and the collector understands."""

    SCM = "SCM"
    SCM_PLUS = "SCM+"
    IDM = "IDM"
    NET_IDM = "NetIDM"
    R900 = "R900"
    R900_BCD = "R900BCD"


class LogMessage(AmrBaseModel):
    """Envelope rtlamr writes for every message.

    ``message`` is kept as the undecoded JSON object; its schema depends on
    ``type`` and is applied in a second pass.
    """

    time: RtlamrTime = Field(alias="Time")
    type: str = Field(alias="Type")
    message: dict[str, Any] = Field(alias="Message")

    @property
    def protocol(self) -> ProtocolType | None:
        """The protocol tag, or ``None`` when rtlamr sent a type we don't know."""
        try:
            return ProtocolType(self.type)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"{{Time:{self.time.isoformat()} Type:{self.type}}}"
