"""Time-of-day selection and the ±window trip filter."""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from stationflow.catalog.domain_types import Trip, minutes_since_midnight
from stationflow.catalog.trip_store import TripStore

logger = logging.getLogger(__name__)

UNFILTERED_MINUTE = -1
MINUTES_PER_DAY = 1440
DEFAULT_WINDOW_MINUTES = 60


def parse_clock(token: str) -> int:
    """Parse an ``HH:MM`` string into minutes since midnight (0-1439)."""
    text = token.strip()
    parts = text.split(":")
    if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise ValueError(f"Clock time must be in HH:MM format: {text!r}")
    hour = int(parts[0])
    minute = int(parts[1])
    if hour > 23 or minute > 59:
        raise ValueError(f"Clock time out of range: {text!r}")
    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    """Render minutes since midnight as a short 12-hour time, e.g. ``8:05 AM``."""
    hours, mins = divmod(int(minutes), 60)
    suffix = "AM" if hours % 24 < 12 else "PM"
    return f"{hours % 12 or 12}:{mins:02d} {suffix}"


@dataclass(frozen=True)
class TimeSelection:
    """Either "any time" (``minute == -1``) or a minute of the day."""

    minute: int = UNFILTERED_MINUTE

    def __post_init__(self) -> None:
        if isinstance(self.minute, bool) or not isinstance(self.minute, numbers.Integral):
            raise TypeError(f"Selection minute must be an int, got {self.minute!r}")
        object.__setattr__(self, "minute", int(self.minute))
        if self.minute != UNFILTERED_MINUTE and not 0 <= self.minute < MINUTES_PER_DAY:
            raise ValueError(
                f"Selection minute must be -1 or within [0, {MINUTES_PER_DAY - 1}]: {self.minute}"
            )

    @classmethod
    def unfiltered(cls) -> "TimeSelection":
        return cls(UNFILTERED_MINUTE)

    @classmethod
    def parse(cls, value: object) -> "TimeSelection":
        """Coerce a slider value (int, numeric string, or ``HH:MM``) into a selection."""
        if isinstance(value, TimeSelection):
            return value
        if value is None:
            return cls.unfiltered()
        if isinstance(value, bool):
            raise TypeError("Selection cannot be a boolean")
        if isinstance(value, numbers.Integral):
            return cls(int(value))
        if isinstance(value, numbers.Real):
            if not float(value).is_integer():
                raise ValueError(f"Selection minute must be a whole number: {value!r}")
            return cls(int(value))
        if isinstance(value, str):
            text = value.strip()
            if ":" in text:
                return cls(parse_clock(text))
            try:
                return cls(int(text))
            except ValueError as exc:
                raise ValueError(f"Unrecognised time selection {value!r}") from exc
        raise TypeError(f"Unsupported time selection type: {type(value).__name__}")

    @property
    def is_filtered(self) -> bool:
        return self.minute != UNFILTERED_MINUTE

    @property
    def label(self) -> str:
        return format_clock(self.minute) if self.is_filtered else "(any time)"


def filter_trips_by_time(
    trips: Sequence[Trip],
    selection: TimeSelection | int,
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
) -> Sequence[Trip]:
    """Keep trips that start or end within ``window_minutes`` of the selection.

    The unfiltered selection returns ``trips`` itself. Minute arithmetic does
    not wrap at midnight: a trip starting at 23:50 is 1430 minutes away from
    00:10, not 20.
    """
    if window_minutes < 0:
        raise ValueError("window_minutes must be non-negative.")
    selection = TimeSelection.parse(selection)
    if not selection.is_filtered:
        return trips

    minute = selection.minute
    if isinstance(trips, TripStore):
        mask = (np.abs(trips.start_minutes - minute) <= window_minutes) | (
            np.abs(trips.end_minutes - minute) <= window_minutes
        )
        source = trips.trips
        kept: Tuple[Trip, ...] = tuple(source[idx] for idx in np.flatnonzero(mask))
    else:
        kept = tuple(trip for trip in trips if _within_window(trip, minute, window_minutes))
    logger.debug(
        "Time filter at %s (±%d min) kept %d of %d trips",
        selection.label,
        window_minutes,
        len(kept),
        len(trips),
    )
    return kept


def _within_window(trip: Trip, minute: int, window_minutes: int) -> bool:
    # Both ends are converted first so a malformed end time is never skipped.
    start = minutes_since_midnight(trip.started_at)
    end = minutes_since_midnight(trip.ended_at)
    return abs(start - minute) <= window_minutes or abs(end - minute) <= window_minutes


__all__ = [
    "DEFAULT_WINDOW_MINUTES",
    "MINUTES_PER_DAY",
    "TimeSelection",
    "UNFILTERED_MINUTE",
    "filter_trips_by_time",
    "format_clock",
    "parse_clock",
]
