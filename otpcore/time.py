"""Time-related helpers.

Code generation works on integer Unix seconds while results expose aware UTC
``datetime`` values.  Both conversions live here so every module rounds and
formats timestamps the same way.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as an aware ``datetime`` instance."""

    return datetime.now(timezone.utc)


def utc_now_isoformat() -> str:
    """Return the current UTC time in ISO 8601 format ending with ``Z``."""

    return isoformat_z(utc_now())


def isoformat_z(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def epoch_seconds() -> int:
    """Current Unix time truncated to whole seconds."""

    return int(time.time())


def from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


__all__ = [
    "epoch_seconds",
    "from_epoch",
    "isoformat_z",
    "utc_now",
    "utc_now_isoformat",
]
