"""Immutable trip log loaded once from the monthly traffic CSV."""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np
import pandas as pd

from .domain_types import TimestampError, Trip
from .sources import open_csv_source

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: Sequence[str] = [
    "started_at",
    "ended_at",
    "start_station_id",
    "end_station_id",
]

OPTIONAL_COLUMNS: Sequence[str] = ["ride_id"]


class TripStore(Sequence[Trip]):
    """Read-only trip sequence with precomputed start/end minutes of day.

    The minute arrays let the time window filter build a boolean mask in one
    numpy pass instead of re-reading every timestamp per selection.
    """

    def __init__(self, trips: Iterable[Trip]):
        self._trips: Tuple[Trip, ...] = tuple(trips)
        self._start_minutes = np.fromiter(
            (trip.start_minute for trip in self._trips), dtype=np.int64, count=len(self._trips)
        )
        self._end_minutes = np.fromiter(
            (trip.end_minute for trip in self._trips), dtype=np.int64, count=len(self._trips)
        )
        self._start_minutes.setflags(write=False)
        self._end_minutes.setflags(write=False)

    # ---------------------------------------------------------------- sequence
    def __getitem__(self, index):
        return self._trips[index]

    def __len__(self) -> int:
        return len(self._trips)

    def __iter__(self) -> Iterator[Trip]:
        return iter(self._trips)

    def __repr__(self) -> str:
        return f"TripStore({len(self._trips)} trips)"

    @property
    def trips(self) -> Tuple[Trip, ...]:
        return self._trips

    @property
    def start_minutes(self) -> np.ndarray:
        return self._start_minutes

    @property
    def end_minutes(self) -> np.ndarray:
        return self._end_minutes

    # ------------------------------------------------------------------ loaders
    @classmethod
    def from_csv(cls, source: str | Path) -> "TripStore":
        """Load trips from a CSV path or URL."""
        csv_source = open_csv_source(source)
        df = pd.read_csv(
            csv_source,
            dtype={"start_station_id": str, "end_station_id": str, "ride_id": str},
        )
        store = cls.from_dataframe(df)
        logger.info("Loaded %d trips from %s", len(store), source)
        return store

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "TripStore":
        missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise ValueError(f"Trip data missing columns: {', '.join(missing)}")

        started_at = _parse_timestamps(df["started_at"], "started_at")
        ended_at = _parse_timestamps(df["ended_at"], "ended_at")
        start_ids = _normalize_station_ids(df["start_station_id"])
        end_ids = _normalize_station_ids(df["end_station_id"])
        if "ride_id" in df.columns:
            ride_ids = [None if pd.isna(value) else str(value) for value in df["ride_id"]]
        else:
            ride_ids = [None] * len(df)

        trips = [
            Trip(
                started_at=start.to_pydatetime(),
                ended_at=end.to_pydatetime(),
                start_station_id=start_id,
                end_station_id=end_id,
                ride_id=ride_id,
            )
            for start, end, start_id, end_id, ride_id in zip(
                started_at, ended_at, start_ids, end_ids, ride_ids
            )
        ]
        return cls(trips)


def _parse_timestamps(series: pd.Series, label: str) -> pd.Series:
    """Parse ``series`` to naive local wall-clock timestamps.

    Offsets are dropped rather than converted, so ``08:00-04:00`` and
    ``08:00-05:00`` both land on minute 480. Rows straddling a DST change carry
    different offsets, which the vectorised parser refuses to mix; those fall
    back to parsing one value at a time.
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            parsed = pd.to_datetime(series, errors="coerce", format="mixed")
    except (TypeError, ValueError):
        parsed = None
    if parsed is None or not pd.api.types.is_datetime64_any_dtype(parsed):
        parsed = pd.Series(
            [_to_wall_clock(value) for value in series],
            index=series.index,
            dtype="datetime64[ns]",
        )
    elif parsed.dt.tz is not None:
        parsed = parsed.dt.tz_localize(None)

    invalid = parsed.isna()
    if invalid.any():
        first = int(np.flatnonzero(invalid.to_numpy())[0])
        raise TimestampError(
            f"{int(invalid.sum())} unparseable {label} values "
            f"(first at row {first}: {series.iloc[first]!r})"
        )
    return parsed


def _to_wall_clock(value: object) -> pd.Timestamp:
    if pd.isna(value):
        return pd.NaT
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return pd.NaT
    if stamp.tzinfo is not None:
        stamp = stamp.tz_localize(None)
    return stamp


def _normalize_station_ids(series: pd.Series) -> list[str]:
    return ["" if pd.isna(value) else str(value).strip() for value in series]


__all__ = ["OPTIONAL_COLUMNS", "REQUIRED_COLUMNS", "TripStore"]
