"""amrcollect - Collect rtlamr meter telemetry into InfluxDB."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("amrcollect")
except PackageNotFoundError:
    __version__ = "0+local"
from amrcollect.collector import Collector
from amrcollect.config import CollectorConfig
from amrcollect.exceptions import (
    AmrConfigError,
    AmrDecodeError,
    AmrError,
    AmrSinkError,
    AmrStateStoreError,
)
from amrcollect.models import (
    IDM,
    R900,
    SCM,
    LogMessage,
    MessageClass,
    MeterIdentity,
    MeterState,
    NetIDM,
    Point,
    ProtocolType,
    SCMPlus,
)
from amrcollect.sinks import DryRunSink, InfluxDBSink, PointSink
from amrcollect.state.store import MeterStore

__all__ = [
    "__version__",
    "AmrConfigError",
    "AmrDecodeError",
    "AmrError",
    "AmrSinkError",
    "AmrStateStoreError",
    "Collector",
    "CollectorConfig",
    "DryRunSink",
    "IDM",
    "InfluxDBSink",
    "LogMessage",
    "MessageClass",
    "MeterIdentity",
    "MeterState",
    "MeterStore",
    "NetIDM",
    "Point",
    "PointSink",
    "ProtocolType",
    "R900",
    "SCM",
    "SCMPlus",
]
