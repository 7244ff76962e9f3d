"""Plain per-station visual attributes handed to a render layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Protocol, Sequence, Tuple

import pandas as pd

from stationflow.traffic.time_window import TimeSelection
from stationflow.traffic.visual_scales import FlowLevel

PAYLOAD_COLUMNS: Sequence[str] = [
    "station_id",
    "lat",
    "lon",
    "radius",
    "flow_level",
    "total_traffic",
    "arrivals",
    "departures",
]


@dataclass(frozen=True)
class StationMarker:
    id: str
    lat: float
    lon: float
    radius: float
    flow_level: FlowLevel
    total_traffic: int
    arrivals: int
    departures: int
    name: str | None = None

    @property
    def tooltip(self) -> str:
        return (
            f"{self.total_traffic} trips "
            f"({self.departures} departures, {self.arrivals} arrivals)"
        )


@dataclass(frozen=True)
class RenderPayload:
    """Everything a render layer needs for one pass."""

    selection: TimeSelection
    markers: Tuple[StationMarker, ...]
    radius_range: Tuple[float, float]

    @property
    def is_filtered(self) -> bool:
        return self.selection.is_filtered

    def marker(self, station_id: str) -> StationMarker:
        for marker in self.markers:
            if marker.id == station_id:
                return marker
        raise KeyError(f"Unknown station id '{station_id}'")

    def to_dataframe(self) -> pd.DataFrame:
        """Tidy frame, one row per station; undefined flow levels are NaN."""
        rows: List[Dict[str, object]] = [
            {
                "station_id": marker.id,
                "lat": marker.lat,
                "lon": marker.lon,
                "radius": marker.radius,
                "flow_level": marker.flow_level.bucket,
                "total_traffic": marker.total_traffic,
                "arrivals": marker.arrivals,
                "departures": marker.departures,
            }
            for marker in self.markers
        ]
        df = pd.DataFrame(rows, columns=list(PAYLOAD_COLUMNS))
        df["flow_level"] = df["flow_level"].astype(float)
        return df


class RenderLayer(Protocol):
    """Anything that can draw a payload; receives nothing back from the core."""

    def render(self, payload: RenderPayload) -> None:
        ...


__all__ = ["PAYLOAD_COLUMNS", "RenderLayer", "RenderPayload", "StationMarker"]
