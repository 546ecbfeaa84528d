"""Binary encoding of store keys and values.

Keys and values are msgpack arrays so they stay compact and encode the same
way every time::

    key   = [endpoint_id, endpoint_type, protocol]
    value = [time, interval]      # time as the msgpack timestamp extension
"""

from __future__ import annotations

from datetime import datetime

import msgpack

from amrcollect.exceptions import AmrStateStoreError
from amrcollect.models.meter_state import MeterIdentity, MeterState


def encode_identity(identity: MeterIdentity) -> bytes:
    return msgpack.packb([identity.endpoint_id, identity.endpoint_type, identity.protocol])


def encode_state(state: MeterState) -> bytes:
    try:
        return msgpack.packb([state.time, state.interval], datetime=True)
    except (TypeError, ValueError) as exc:
        # msgpack refuses naive datetimes.
        raise AmrStateStoreError(f"cannot encode meter state {state}: {exc}") from exc


def _unpack_array(raw: bytes, length: int, **kwargs: object) -> list[object]:
    try:
        value = msgpack.unpackb(raw, **kwargs)
    except (msgpack.UnpackException, ValueError, TypeError) as exc:
        raise AmrStateStoreError(f"msgpack.unpackb: {exc}") from exc
    if not isinstance(value, list) or len(value) != length:
        raise AmrStateStoreError(f"expected array of {length}, got {value!r}")
    return value


def decode_identity(raw: bytes) -> MeterIdentity:
    endpoint_id, endpoint_type, protocol = _unpack_array(raw, 3)
    if not isinstance(endpoint_id, int) or not isinstance(endpoint_type, int) or not isinstance(protocol, str):
        raise AmrStateStoreError(f"malformed meter key {raw!r}")
    return MeterIdentity(endpoint_id=endpoint_id, endpoint_type=endpoint_type, protocol=protocol)


def decode_state(raw: bytes) -> MeterState:
    # timestamp=3 unpacks the timestamp extension as an aware UTC datetime.
    time, interval = _unpack_array(raw, 2, timestamp=3)
    if not isinstance(time, datetime) or not isinstance(interval, int):
        raise AmrStateStoreError(f"malformed meter state {raw!r}")
    return MeterState(time=time, interval=interval)
