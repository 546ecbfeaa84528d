"""Protocol dispatch and point building.

The envelope's protocol tag picks the payload schema (second parsing pass)
and the normalization applied to it:

- SCM, SCM+, R900, R900BCD: one cumulative point at arrival time.
- IDM, NetIDM: one cumulative point at the interval anchor plus one
  differential point per reading not already reported.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from amrcollect._constants import IDM_ENDPOINT_TYPE, NETIDM_ENDPOINT_TYPE
from amrcollect.exceptions import AmrDecodeError, AmrStateStoreError
from amrcollect.models.envelope import LogMessage, ProtocolType
from amrcollect.models.meter_state import MeterIdentity, MeterState
from amrcollect.models.meters import IDM, R900, SCM, MeterMessage, NetIDM, SCMPlus
from amrcollect.models.point import MessageClass, Point
from amrcollect.state.policy import place_readings, select_new_readings
from amrcollect.state.store import MeterStore

_logger = logging.getLogger(__name__)


def _payload_model(protocol: ProtocolType) -> type[MeterMessage]:
    match protocol:
        case ProtocolType.SCM:
            return SCM
        case ProtocolType.SCM_PLUS:
            return SCMPlus
        case ProtocolType.IDM:
            return IDM
        case ProtocolType.NET_IDM:
            return NetIDM
        case ProtocolType.R900 | ProtocolType.R900_BCD:
            return R900


def decode_message(envelope: LogMessage) -> MeterMessage | None:
    """Decode the payload according to the envelope's protocol tag.

    Returns ``None`` for tags the collector does not support.

    Raises
    ------
    AmrDecodeError
        The payload does not match the schema of its tag.
    """
    protocol = envelope.protocol
    if protocol is None:
        return None

    model = _payload_model(protocol)
    try:
        return model.model_validate(envelope.message)
    except ValidationError as exc:
        raise AmrDecodeError(f"{envelope}: {protocol} payload: {exc}") from exc


def violates_strict_idm(protocol: ProtocolType | None, message: MeterMessage) -> bool:
    """Whether the endpoint type belongs to the other interval protocol.

    IDM and NetIDM share preamble and checksum, so every packet decodes as
    both. Endpoint type 7 is IDM and 8 is NetIDM.
    """
    if protocol == ProtocolType.IDM:
        return message.endpoint_type == NETIDM_ENDPOINT_TYPE
    if protocol == ProtocolType.NET_IDM:
        return message.endpoint_type == IDM_ENDPOINT_TYPE
    return False


def endpoint_tags(envelope: LogMessage, message: MeterMessage, msg_type: MessageClass) -> dict[str, str]:
    return {
        "protocol": envelope.type,
        "msg_type": msg_type.value,
        "endpoint_type": str(message.endpoint_type),
        "endpoint_id": str(message.endpoint_id),
    }


def build_cumulative_point(envelope: LogMessage, message: SCM | SCMPlus | R900) -> Point:
    return Point(
        time=envelope.time,
        tags=endpoint_tags(envelope, message, MessageClass.CUMULATIVE),
        fields=message.cumulative_fields(),
    )


def build_interval_points(envelope: LogMessage, message: IDM | NetIDM, store: MeterStore) -> list[Point]:
    """Build the cumulative and the new differential points of an IDM/NetIDM.

    The meter's state is replaced by this message's anchor and interval
    before readings are compared against the previous state. A failed
    state commit is logged and the points are still returned.

    Raises
    ------
    AmrDecodeError
        The message time is too close to the calendar limits to place its
        intervals. The store is left untouched.
    """
    try:
        anchor = envelope.time - message.interval_offset
        readings = place_readings(anchor, message.interval_count, message.differential_intervals)
    except OverflowError as exc:
        raise AmrDecodeError(f"{envelope}: interval times out of range: {exc}") from exc

    meter = MeterIdentity(
        endpoint_id=message.endpoint_id,
        endpoint_type=message.endpoint_type,
        protocol=envelope.type,
    )

    previous = store.lookup(meter)
    try:
        store.update(meter, MeterState(time=anchor, interval=message.interval_count))
    except AmrStateStoreError:
        _logger.warning("Meter state update failed for %s, deduplication checkpoint lost", meter, exc_info=True)

    points = [
        Point(
            time=anchor,
            tags=endpoint_tags(envelope, message, MessageClass.CUMULATIVE),
            fields=message.cumulative_fields(),
        )
    ]

    selected = select_new_readings(previous, readings)
    if len(selected) < len(readings):
        _logger.debug(
            "Dropped %d already reported intervals for %s",
            len(readings) - len(selected),
            meter,
        )

    tags = endpoint_tags(envelope, message, MessageClass.DIFFERENTIAL)
    for reading in selected:
        fields = {"consumption": reading.usage, "interval": reading.interval}
        if message.has_outage(reading.idx):
            fields["outage"] = 1
        points.append(Point(time=reading.time, tags=dict(tags), fields=fields))

    return points


def build_points(envelope: LogMessage, message: MeterMessage, store: MeterStore) -> list[Point]:
    """Normalize a decoded message into points."""
    match message:
        case IDM() | NetIDM():
            return build_interval_points(envelope, message, store)
        case _:
            return [build_cumulative_point(envelope, message)]
