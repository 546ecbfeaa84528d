"""Per-protocol rtlamr message payloads.

Cumulative meters (SCM, SCM+, R900) report a running total. Interval meters
(IDM, NetIDM) additionally carry up to 47 five-minute usage deltas counted
back from the current interval.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import Field

from amrcollect._constants import (
    OUTAGE_FLAG_BYTES,
    OUTAGE_TOP_BIT,
    TRANSMIT_TICKS_PER_SECOND,
)
from amrcollect.models._base import AmrBaseModel, ByteSlice, Uint8, Uint16, Uint32


class SCM(AmrBaseModel):
    """Standard Consumption Message."""

    endpoint_id: Uint32 = Field(alias="ID")
    endpoint_type: Uint8 = Field(alias="Type")
    consumption: Uint32 = Field(alias="Consumption")

    def cumulative_fields(self) -> dict[str, int]:
        return {"consumption": self.consumption}


class SCMPlus(AmrBaseModel):
    """Standard Consumption Message Plus."""

    endpoint_id: Uint32 = Field(alias="EndpointID")
    endpoint_type: Uint8 = Field(alias="EndpointType")
    consumption: Uint32 = Field(alias="Consumption")

    def cumulative_fields(self) -> dict[str, int]:
        return {"consumption": self.consumption}


class R900(AmrBaseModel):
    """Neptune R900 water meter message, both R900 and R900BCD."""

    endpoint_id: Uint32 = Field(alias="ID")
    endpoint_type: Uint8 = Field(alias="Unkn1")
    consumption: Uint32 = Field(alias="Consumption")

    no_use: Uint8 = Field(alias="NoUse")  # day bins of no use
    back_flow: Uint8 = Field(alias="BackFlow")  # backflow past 35d hi/lo
    leak: Uint8 = Field(alias="Leak")  # day bins of leak
    leak_now: Uint8 = Field(alias="LeakNow")  # leak past 24h hi/lo

    def cumulative_fields(self) -> dict[str, int]:
        return {
            "consumption": self.consumption,
            "nouse": self.no_use,
            "backflow": self.back_flow,
            "leak": self.leak,
            "leak_now": self.leak_now,
        }


class IntervalMessage(AmrBaseModel):
    """Layout shared by IDM and NetIDM.

    ``differential_intervals[0]`` is the usage of the current interval
    ``interval_count``; each following entry is one interval older.
    """

    endpoint_type: Uint8 = Field(alias="ERTType")
    endpoint_id: Uint32 = Field(alias="ERTSerialNumber")
    transmit_time_offset: Uint16 = Field(alias="TransmitTimeOffset")
    interval_count: Uint8 = Field(alias="ConsumptionIntervalCount")
    differential_intervals: tuple[Uint16, ...] = Field(alias="DifferentialConsumptionIntervals")
    power_outage_flags: ByteSlice = Field(default=b"", alias="PowerOutageFlags")

    @property
    def interval_offset(self) -> timedelta:
        """Time elapsed between the start of the current interval and transmission."""
        return timedelta(seconds=self.transmit_time_offset / TRANSMIT_TICKS_PER_SECOND)

    @property
    def outage_mask(self) -> int:
        """Outage flags as a big-endian integer, zero-extended from 6 to 8 bytes."""
        flags = self.power_outage_flags[:OUTAGE_FLAG_BYTES].ljust(OUTAGE_FLAG_BYTES, b"\x00")
        return int.from_bytes(bytes(2) + flags, "big")

    def has_outage(self, idx: int) -> bool:
        """Whether the reading ``idx`` intervals back had a power outage."""
        if not 0 <= idx <= OUTAGE_TOP_BIT:
            return False
        return (self.outage_mask >> (OUTAGE_TOP_BIT - idx)) & 1 == 1


class IDM(IntervalMessage):
    """Interval Data Message."""

    last_consumption_count: Uint32 = Field(alias="LastConsumptionCount")

    def cumulative_fields(self) -> dict[str, int]:
        return {"consumption": self.last_consumption_count}


class NetIDM(IntervalMessage):
    """Net-metering Interval Data Message."""

    last_consumption: Uint32 = Field(alias="LastConsumption")
    last_generation: Uint32 = Field(alias="LastGeneration")
    last_consumption_net: Uint32 = Field(alias="LastConsumptionNet")

    def cumulative_fields(self) -> dict[str, int]:
        return {
            "consumption": self.last_consumption,
            "generation": self.last_generation,
            "consumption_net": self.last_consumption_net,
        }


MeterMessage = SCM | SCMPlus | R900 | IDM | NetIDM
"""Any decoded payload."""
