"""Immutable station catalog built from a GBFS-style station feed."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .domain_types import Station
from .sources import read_json_source

logger = logging.getLogger(__name__)


class StationCatalog(Sequence[Station]):
    """Ordered, read-only collection of stations with unique ids."""

    def __init__(self, stations: Iterable[Station]):
        ordered: List[Station] = []
        by_id: Dict[str, Station] = {}
        for station in stations:
            if station.id in by_id:
                raise ValueError(f"Duplicate station id {station.id!r} in catalog")
            by_id[station.id] = station
            ordered.append(station)
        self._stations: Tuple[Station, ...] = tuple(ordered)
        self._by_id = by_id

    # ---------------------------------------------------------------- sequence
    def __getitem__(self, index):
        return self._stations[index]

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[Station]:
        return iter(self._stations)

    def __repr__(self) -> str:
        return f"StationCatalog({len(self._stations)} stations)"

    # ----------------------------------------------------------------- lookups
    @property
    def station_ids(self) -> List[str]:
        return [station.id for station in self._stations]

    def get(self, station_id: str) -> Optional[Station]:
        return self._by_id.get(str(station_id))

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Station):
            return self._by_id.get(item.id) == item
        return str(item) in self._by_id

    # ------------------------------------------------------------------ loaders
    @classmethod
    def from_json(cls, source: str | Path) -> "StationCatalog":
        """Load a catalog from a station feed file or URL."""
        payload = read_json_source(source)
        catalog = cls.from_payload(payload)
        logger.info("Loaded %d stations from %s", len(catalog), source)
        return catalog

    @classmethod
    def from_payload(cls, payload: object) -> "StationCatalog":
        """Build a catalog from ``{"data": {"stations": [...]}}`` or a bare list."""
        records = _extract_station_records(payload)
        return cls(_parse_station(raw, position) for position, raw in enumerate(records))


def _extract_station_records(payload: object) -> List[Mapping[str, object]]:
    if isinstance(payload, Mapping):
        data = payload.get("data")
        if not isinstance(data, Mapping) or "stations" not in data:
            raise ValueError("Station feed must contain data.stations")
        records = data["stations"]
    else:
        records = payload
    if not isinstance(records, list):
        raise TypeError("Station records must be provided as a list")
    return records


def _parse_station(raw: object, position: int) -> Station:
    if not isinstance(raw, Mapping):
        raise TypeError(f"Station entry #{position} must be a mapping")
    raw_id = raw.get("short_name")
    if raw_id is None:
        raw_id = raw.get("id")
    station_id = "" if raw_id is None else str(raw_id).strip()
    if not station_id:
        raise ValueError(f"Station entry #{position} is missing short_name")
    lat = _coerce_coordinate(raw.get("lat"), "lat", station_id)
    lon = _coerce_coordinate(raw.get("lon"), "lon", station_id)
    name = raw.get("name")
    capacity = raw.get("capacity")
    return Station(
        id=station_id,
        lat=lat,
        lon=lon,
        name=str(name) if name is not None else None,
        capacity=int(capacity) if capacity is not None else None,
    )


def _coerce_coordinate(value: object, label: str, station_id: str) -> float:
    try:
        coordinate = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Station {station_id!r} has an invalid {label}: {value!r}") from exc
    if math.isnan(coordinate):
        raise ValueError(f"Station {station_id!r} has an invalid {label}: {value!r}")
    return coordinate


__all__ = ["StationCatalog"]
