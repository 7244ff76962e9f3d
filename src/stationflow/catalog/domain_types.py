"""Core dataclasses shared across the catalog and traffic packages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

import pandas as pd


class TimestampError(ValueError):
    """Raised when a trip timestamp cannot be read as a time of day."""


def minutes_since_midnight(value: object) -> int:
    """Return ``hour * 60 + minute`` of a timestamp, ignoring date and seconds."""
    if isinstance(value, (datetime, time)) and not pd.isna(value):
        return value.hour * 60 + value.minute
    raise TimestampError(f"Cannot read a time of day from {value!r}")


@dataclass(frozen=True)
class Station:
    """Fixed bike-share dock location keyed by its short name."""

    id: str
    lat: float
    lon: float
    name: Optional[str] = None
    capacity: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name or self.id


@dataclass(frozen=True)
class Trip:
    """Single rental from one station to another."""

    started_at: datetime
    ended_at: datetime
    start_station_id: str
    end_station_id: str
    ride_id: Optional[str] = None

    @property
    def start_minute(self) -> int:
        return minutes_since_midnight(self.started_at)

    @property
    def end_minute(self) -> int:
        return minutes_since_midnight(self.ended_at)
