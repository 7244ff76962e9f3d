"""Per-station arrival/departure counts for a subset of trips."""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from stationflow.catalog.domain_types import Station, Trip

logger = logging.getLogger(__name__)

AGGREGATE_COLUMNS: Sequence[str] = [
    "station_id",
    "name",
    "lat",
    "lon",
    "arrivals",
    "departures",
    "total_traffic",
]


@dataclass(frozen=True)
class StationTraffic:
    """A station annotated with the traffic derived from one trip subset."""

    station: Station
    arrivals: int = 0
    departures: int = 0

    @property
    def id(self) -> str:
        return self.station.id

    @property
    def total_traffic(self) -> int:
        return self.arrivals + self.departures

    @property
    def departure_ratio(self) -> float:
        """``departures / total_traffic``; NaN for a station with no traffic."""
        total = self.total_traffic
        if total == 0:
            return math.nan
        return self.departures / total


class StationTrafficAggregate(Sequence[StationTraffic]):
    """Traffic for every catalog station, in catalog order and keyed by id."""

    def __init__(self, entries: Iterable[StationTraffic]):
        self._entries: Tuple[StationTraffic, ...] = tuple(entries)
        self._by_id: Dict[str, StationTraffic] = {entry.id: entry for entry in self._entries}

    def __getitem__(self, index):
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[StationTraffic]:
        return iter(self._entries)

    def get(self, station_id: str) -> Optional[StationTraffic]:
        return self._by_id.get(str(station_id))

    def max_total_traffic(self) -> int:
        return max((entry.total_traffic for entry in self._entries), default=0)

    def total_arrivals(self) -> int:
        return sum(entry.arrivals for entry in self._entries)

    def total_departures(self) -> int:
        return sum(entry.departures for entry in self._entries)

    def to_dataframe(self) -> pd.DataFrame:
        rows: List[Dict[str, object]] = [
            {
                "station_id": entry.id,
                "name": entry.station.name,
                "lat": entry.station.lat,
                "lon": entry.station.lon,
                "arrivals": entry.arrivals,
                "departures": entry.departures,
                "total_traffic": entry.total_traffic,
            }
            for entry in self._entries
        ]
        return pd.DataFrame(rows, columns=list(AGGREGATE_COLUMNS))


def compute_station_traffic(
    stations: Iterable[Station], trips: Iterable[Trip]
) -> StationTrafficAggregate:
    """Count arrivals (by end station) and departures (by start station).

    Stations without trips get zero counts. Trip endpoints that match no
    catalog station are ignored.
    """
    arrivals: Counter[str] = Counter()
    departures: Counter[str] = Counter()
    for trip in trips:
        arrivals[trip.end_station_id] += 1
        departures[trip.start_station_id] += 1

    entries = [
        StationTraffic(
            station=station,
            arrivals=arrivals.get(station.id, 0),
            departures=departures.get(station.id, 0),
        )
        for station in stations
    ]
    aggregate = StationTrafficAggregate(entries)

    if logger.isEnabledFor(logging.DEBUG):
        unmatched_arrivals = sum(arrivals.values()) - aggregate.total_arrivals()
        unmatched_departures = sum(departures.values()) - aggregate.total_departures()
        logger.debug(
            "Aggregated %d trips over %d stations (%d arrivals, %d departures unmatched)",
            sum(departures.values()),
            len(aggregate),
            unmatched_arrivals,
            unmatched_departures,
        )
    return aggregate


__all__ = [
    "AGGREGATE_COLUMNS",
    "StationTraffic",
    "StationTrafficAggregate",
    "compute_station_traffic",
]
