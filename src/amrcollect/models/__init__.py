"""Data models for rtlamr messages and normalized points."""

from amrcollect.models._base import AmrBaseModel, ByteSlice, RtlamrTime, parse_byte_slice, parse_rtlamr_time
from amrcollect.models.envelope import LogMessage, ProtocolType
from amrcollect.models.meter_state import MeterIdentity, MeterState
from amrcollect.models.meters import IDM, R900, SCM, IntervalMessage, MeterMessage, NetIDM, SCMPlus
from amrcollect.models.point import MessageClass, Point

__all__ = [
    "AmrBaseModel",
    "ByteSlice",
    "IDM",
    "IntervalMessage",
    "LogMessage",
    "MessageClass",
    "MeterIdentity",
    "MeterMessage",
    "MeterState",
    "NetIDM",
    "Point",
    "ProtocolType",
    "R900",
    "RtlamrTime",
    "SCM",
    "SCMPlus",
    "parse_byte_slice",
    "parse_rtlamr_time",
]
