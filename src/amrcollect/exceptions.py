"""Custom exception hierarchy for amrcollect."""

from __future__ import annotations

from typing import Any


class AmrError(Exception):
    """Base exception for all amrcollect errors."""


class AmrConfigError(AmrError):
    """Invalid or missing configuration."""


class AmrDecodeError(AmrError):
    """A line or its encapsulated message could not be decoded."""

    def __init__(self, message: str, *, line: str = "") -> None:
        self.line = line
        super().__init__(message)


class AmrStateStoreError(AmrError):
    """The durable meter state store failed to open, read or commit.

    ``identity`` is set when the failure concerns a single meter update.
    """

    def __init__(self, message: str, *, identity: Any = None) -> None:
        self.identity = identity
        super().__init__(message)


class AmrSinkError(AmrError):
    """Writing points to the destination failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message)
