from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple

import yaml

from stationflow.traffic.time_window import DEFAULT_WINDOW_MINUTES
from stationflow.traffic.visual_scales import (
    FILTERED_RADIUS_RANGE,
    FLOW_BUCKETS,
    UNFILTERED_RADIUS_RANGE,
)

logger = logging.getLogger(__name__)

DEFAULT_STATIONS_SOURCE = "https://dsc106.com/labs/lab07/data/bluebikes-stations.json"
DEFAULT_TRIPS_SOURCE = "https://dsc106.com/labs/lab07/data/bluebikes-traffic-2024-03.csv"


@dataclass(frozen=True)
class MapView:
    """Initial camera and basemap for rendered maps."""

    center_lat: float = 42.36027
    center_lon: float = -71.09415
    zoom: float = 12.0
    min_zoom: float = 5.0
    max_zoom: float = 18.0
    style: str = "mapbox://styles/mapbox/streets-v12"

    def __post_init__(self) -> None:
        if not -90.0 <= self.center_lat <= 90.0:
            raise ValueError(f"Map center latitude out of range: {self.center_lat}")
        if not -180.0 <= self.center_lon <= 180.0:
            raise ValueError(f"Map center longitude out of range: {self.center_lon}")
        if self.min_zoom > self.max_zoom:
            raise ValueError("Map min_zoom cannot exceed max_zoom")
        if not self.min_zoom <= self.zoom <= self.max_zoom:
            raise ValueError("Map zoom must lie between min_zoom and max_zoom")


@dataclass(frozen=True)
class BikeLaneOverlay:
    """GeoJSON line overlay drawn underneath the station markers."""

    name: str
    url: str
    color: str = "#32D400"
    width: float = 5.0
    opacity: float = 0.6

    def __post_init__(self) -> None:
        if not self.name or not self.url:
            raise ValueError("Bike-lane overlays need both a name and a url")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Overlay opacity must be within [0, 1]: {self.opacity}")


DEFAULT_BIKE_LANES: Tuple[BikeLaneOverlay, ...] = (
    BikeLaneOverlay(
        name="boston",
        url="https://bostonopendata-boston.opendata.arcgis.com/datasets/boston::existing-bike-network-2022.geojson",
    ),
    BikeLaneOverlay(
        name="cambridge",
        url="https://data.cambridgema.gov/resource/9aey-9g9p.geojson",
    ),
)


@dataclass
class TrafficMapConfig:
    window_minutes: int = DEFAULT_WINDOW_MINUTES
    unfiltered_radius_range: Tuple[float, float] = UNFILTERED_RADIUS_RANGE
    filtered_radius_range: Tuple[float, float] = FILTERED_RADIUS_RANGE
    flow_buckets: Tuple[float, ...] = FLOW_BUCKETS
    stations_source: str = DEFAULT_STATIONS_SOURCE
    trips_source: str = DEFAULT_TRIPS_SOURCE
    map_view: MapView = field(default_factory=MapView)
    bike_lanes: List[BikeLaneOverlay] = field(default_factory=lambda: list(DEFAULT_BIKE_LANES))

    def __post_init__(self) -> None:
        self.window_minutes = int(self.window_minutes)
        if self.window_minutes < 0:
            raise ValueError("window_minutes must be non-negative")
        self.unfiltered_radius_range = _parse_range(
            self.unfiltered_radius_range, "unfiltered_radius_range"
        )
        self.filtered_radius_range = _parse_range(self.filtered_radius_range, "filtered_radius_range")
        buckets = tuple(float(value) for value in self.flow_buckets)
        if not buckets:
            raise ValueError("flow_buckets must contain at least one value")
        self.flow_buckets = buckets

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TrafficMapConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Traffic map YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, Mapping):
            raise TypeError("Traffic map YAML must contain a mapping at the top level")
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "TrafficMapConfig":
        known = {
            "window_minutes",
            "unfiltered_radius_range",
            "filtered_radius_range",
            "flow_buckets",
            "stations_source",
            "trips_source",
            "map",
            "bike_lanes",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown traffic map config keys: %s", ", ".join(unknown))

        kwargs: Dict[str, object] = {}
        for key in ("window_minutes", "unfiltered_radius_range", "filtered_radius_range", "flow_buckets"):
            if data.get(key) is not None:
                kwargs[key] = data[key]
        for key in ("stations_source", "trips_source"):
            if data.get(key) is not None:
                kwargs[key] = str(data[key])

        map_section = data.get("map")
        if map_section is not None:
            if not isinstance(map_section, Mapping):
                raise TypeError("'map' must be a mapping of view settings")
            kwargs["map_view"] = _parse_map_view(map_section)

        lanes_section = data.get("bike_lanes")
        if lanes_section is not None:
            kwargs["bike_lanes"] = _parse_bike_lanes(lanes_section)
        return cls(**kwargs)  # type: ignore[arg-type]

    def to_yaml(self, path: str | Path) -> None:
        view = self.map_view
        output: Dict[str, object] = {
            "window_minutes": self.window_minutes,
            "unfiltered_radius_range": list(self.unfiltered_radius_range),
            "filtered_radius_range": list(self.filtered_radius_range),
            "flow_buckets": list(self.flow_buckets),
            "stations_source": self.stations_source,
            "trips_source": self.trips_source,
            "map": {
                "center_lat": view.center_lat,
                "center_lon": view.center_lon,
                "zoom": view.zoom,
                "min_zoom": view.min_zoom,
                "max_zoom": view.max_zoom,
                "style": view.style,
            },
            "bike_lanes": [
                {
                    "name": lane.name,
                    "url": lane.url,
                    "color": lane.color,
                    "width": lane.width,
                    "opacity": lane.opacity,
                }
                for lane in self.bike_lanes
            ],
        }
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(output, handle, sort_keys=True)


def _parse_range(value: object, label: str) -> Tuple[float, float]:
    if not isinstance(value, Sequence) or isinstance(value, str) or len(value) != 2:
        raise ValueError(f"{label} must be a pair of numbers, got {value!r}")
    low, high = (float(item) for item in value)
    if low < 0 or high < low:
        raise ValueError(f"{label} must satisfy 0 <= low <= high, got {value!r}")
    return low, high


def _parse_map_view(section: Mapping[str, object]) -> MapView:
    fields = {"center_lat", "center_lon", "zoom", "min_zoom", "max_zoom"}
    kwargs: Dict[str, object] = {
        key: float(section[key]) for key in fields if section.get(key) is not None  # type: ignore[arg-type]
    }
    if section.get("style") is not None:
        kwargs["style"] = str(section["style"])
    return MapView(**kwargs)  # type: ignore[arg-type]


def _parse_bike_lanes(section: object) -> List[BikeLaneOverlay]:
    if not isinstance(section, list):
        raise TypeError("'bike_lanes' must be a list of overlay mappings")
    lanes: List[BikeLaneOverlay] = []
    for raw in section:
        if not isinstance(raw, Mapping):
            raise TypeError("Bike-lane entries must be mappings with name and url")
        lanes.append(
            BikeLaneOverlay(
                name=str(raw.get("name") or "").strip(),
                url=str(raw.get("url") or "").strip(),
                color=str(raw.get("color", "#32D400")),
                width=float(raw.get("width", 5.0)),
                opacity=float(raw.get("opacity", 0.6)),
            )
        )
    return lanes


__all__ = ["BikeLaneOverlay", "MapView", "TrafficMapConfig"]
