"""Collector configuration for amrcollect."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from amrcollect._constants import DEFAULT_STATE_PATH
from amrcollect.exceptions import AmrConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_flag(value: str | None) -> bool:
    """A flag variable is enabled by its presence unless explicitly false."""
    if value is None:
        return False
    return _env_bool(value, True)


@dataclasses.dataclass(frozen=True)
class CollectorConfig:
    """Collector configuration.

    Parameters
    ----------
    hostname : str
        InfluxDB base URL, e.g. ``"https://influx.example.com:8086"``.
    token : str
        InfluxDB API token.
    org : str
        InfluxDB organization.
    bucket : str
        InfluxDB bucket points are written to.
    measurement : str
        Measurement name used for every point.
    client_cert : str or None
        Path to a PEM client certificate for mutual TLS.
    client_key : str or None
        Path to the PEM private key matching ``client_cert``.
    strict_idm : bool
        Drop IDM messages from endpoint type 8 and NetIDM messages from
        endpoint type 7. Both decoders accept each other's packets; enable
        this when listening for both at once.
    dry_run : bool
        Decode and deduplicate but never contact InfluxDB.
    state_path : str
        Path of the meter state database.
    """

    hostname: str = ""
    token: str = ""
    org: str = ""
    bucket: str = ""
    measurement: str = ""
    client_cert: str | None = None
    client_key: str | None = None
    strict_idm: bool = False
    dry_run: bool = False
    state_path: str = DEFAULT_STATE_PATH

    def validate(self) -> None:
        """Raise :class:`AmrConfigError` if a required value is missing."""
        if self.dry_run:
            return

        missing = [
            env_key
            for env_key, field_name in _ENV_REQUIRED_MAP.items()
            if not getattr(self, field_name)
        ]
        if self.client_cert and not self.client_key:
            missing.append("COLLECT_INFLUXDB_CLIENT_KEY")
        if missing:
            raise AmrConfigError(f"undefined: {', '.join(missing)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> CollectorConfig:
        """Create configuration from ``COLLECT_*`` environment variables.

        Explicit keyword arguments override environment values. The result
        is validated before it is returned.

        Raises
        ------
        AmrConfigError
            A required variable is undefined and dry run is not enabled.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in {**_ENV_REQUIRED_MAP, **_ENV_OPTIONAL_MAP}.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "strict_idm" not in overrides:
            config_kwargs["strict_idm"] = _env_flag(env.get("COLLECT_STRICTIDM"))

        if "dry_run" not in overrides:
            config_kwargs["dry_run"] = _env_flag(env.get("COLLECT_INFLUXDB_DRYRUN"))

        config_kwargs.update(overrides)

        config = cls(**config_kwargs)
        config.validate()
        return config


_ENV_REQUIRED_MAP = {
    "COLLECT_INFLUXDB_HOSTNAME": "hostname",
    "COLLECT_INFLUXDB_TOKEN": "token",
    "COLLECT_INFLUXDB_ORG": "org",
    "COLLECT_INFLUXDB_BUCKET": "bucket",
    "COLLECT_INFLUXDB_MEASUREMENT": "measurement",
}

_ENV_OPTIONAL_MAP = {
    "COLLECT_INFLUXDB_CLIENT_CERT": "client_cert",
    "COLLECT_INFLUXDB_CLIENT_KEY": "client_key",
    "COLLECT_STATE_PATH": "state_path",
}
