"""Durable meter state store.

SQLite is the source of truth; an in-memory mirror serves lookups. The
mirror is filled once by :meth:`MeterStore.preload` and afterwards only
changes once an update has been committed, so it never holds state that is
not on disk.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from types import TracebackType

from amrcollect.exceptions import AmrStateStoreError
from amrcollect.models.meter_state import MeterIdentity, MeterState
from amrcollect.state.codec import decode_identity, decode_state, encode_identity, encode_state

_logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS meters (
    key BLOB PRIMARY KEY,
    value BLOB NOT NULL
) WITHOUT ROWID
"""

_UPSERT = """
INSERT INTO meters (key, value) VALUES (?, ?)
ON CONFLICT (key) DO UPDATE SET value = excluded.value
"""


class MeterStore:
    """Keeps each meter's last reported interval across restarts.

    Use :meth:`open` to get a store that is already preloaded.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._meters: dict[MeterIdentity, MeterState] = {}
        try:
            self._conn = sqlite3.connect(self._path)
            with self._conn:
                self._conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            raise AmrStateStoreError(f"cannot open meter state store {self._path!r}: {exc}") from exc

    @classmethod
    def open(cls, path: str | Path) -> MeterStore:
        store = cls(path)
        store.preload()
        return store

    def __len__(self) -> int:
        return len(self._meters)

    def __contains__(self, identity: object) -> bool:
        return identity in self._meters

    def __enter__(self) -> MeterStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def preload(self) -> None:
        """Load every persisted meter into the mirror.

        A failed scan leaves the mirror empty: deduplication then starts
        over, which can only let duplicates through. Rows that don't decode
        are skipped.
        """
        meters: dict[MeterIdentity, MeterState] = {}
        try:
            rows = self._conn.execute("SELECT key, value FROM meters ORDER BY key").fetchall()
        except sqlite3.Error as exc:
            _logger.warning("Meter state preload from %s failed, starting empty: %s", self._path, exc)
            self._meters = {}
            return

        for key, value in rows:
            try:
                meters[decode_identity(key)] = decode_state(value)
            except AmrStateStoreError as exc:
                _logger.warning("Skipping undecodable meter state row in %s: %s", self._path, exc)

        self._meters = meters
        _logger.debug("Preloaded state for %d meters from %s", len(meters), self._path)

    def lookup(self, identity: MeterIdentity) -> MeterState | None:
        return self._meters.get(identity)

    def update(self, identity: MeterIdentity, state: MeterState) -> None:
        """Persist ``state`` for ``identity``, then mirror it.

        Raises
        ------
        AmrStateStoreError
            Encoding or the commit failed. The mirror is unchanged.
        """
        try:
            key = encode_identity(identity)
            value = encode_state(state)
        except AmrStateStoreError as exc:
            exc.identity = identity
            raise

        try:
            with self._conn:
                self._conn.execute(_UPSERT, (key, value))
        except sqlite3.Error as exc:
            raise AmrStateStoreError(f"commit failed for {identity}: {exc}", identity=identity) from exc

        self._meters[identity] = state

    def close(self) -> None:
        self._conn.close()
