"""Internal constants shared across the library."""

from datetime import timedelta

# Two observations of the same interval slot closer than this are one reading.
DEDUP_THRESHOLD = timedelta(seconds=30)

# Each differential reading covers one fixed-length interval.
INTERVAL_DURATION = timedelta(minutes=5)

# IDM/NetIDM interval counters wrap at 256.
INTERVAL_SLOTS = 256

# TransmitTimeOffset is counted in 1/16ths of a second.
TRANSMIT_TICKS_PER_SECOND = 16

# ------------------------------------------------------------------
# Power outage bitfield
# ------------------------------------------------------------------

# rtlamr reports 6 bytes of flags; they are zero-extended to a 64-bit word.
OUTAGE_FLAG_BYTES = 6
# Reading ``idx`` maps to bit ``OUTAGE_TOP_BIT - idx``.
OUTAGE_TOP_BIT = 46
MAX_DIFFERENTIAL_READINGS = OUTAGE_TOP_BIT + 1

# ------------------------------------------------------------------
# Strict IDM/NetIDM disambiguation
# ------------------------------------------------------------------

# Both messages share preamble and checksum so either decoder accepts the
# other's packets. In the wild IDM is endpoint type 7 and NetIDM type 8.
IDM_ENDPOINT_TYPE = 7
NETIDM_ENDPOINT_TYPE = 8

DEFAULT_STATE_PATH = "meters.db"
