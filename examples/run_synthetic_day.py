from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from numpy.random import default_rng

from stationflow.catalog import Station, StationCatalog, Trip, TripStore
from stationflow.mapview import TrafficMapConfig, TrafficMapController


SYNTH_STATIONS = [
    ("A32000", "Kendall T", 42.36247, -71.08425),
    ("A32010", "MIT Stata Center", 42.36167, -71.09074),
    ("B32006", "Central Square", 42.36552, -71.10306),
    ("D32016", "South Station", 42.35234, -71.05525),
    ("M32041", "Harvard Square", 42.37325, -71.11894),
]

# Origin weights for peak-hour trips; destinations flip between peaks.
MORNING_SOURCES = {"M32041": 0.4, "B32006": 0.3, "D32016": 0.3}
EVENING_SOURCES = {"A32000": 0.5, "A32010": 0.5}


def _build_catalog() -> StationCatalog:
    return StationCatalog(
        Station(id=sid, name=name, lat=lat, lon=lon) for sid, name, lat, lon in SYNTH_STATIONS
    )


def _build_trips(num_trips: int, seed: Optional[int]) -> TripStore:
    rng = default_rng(seed)
    station_ids = [sid for sid, *_ in SYNTH_STATIONS]
    day = datetime(2024, 3, 12)
    trips: List[Trip] = []
    for idx in range(num_trips):
        peak = rng.random()
        if peak < 0.4:
            start_minute = int(rng.normal(8.5 * 60, 40))
            origins = MORNING_SOURCES
            destinations = EVENING_SOURCES
        elif peak < 0.8:
            start_minute = int(rng.normal(17.5 * 60, 45))
            origins = EVENING_SOURCES
            destinations = MORNING_SOURCES
        else:
            start_minute = int(rng.uniform(0, 1440))
            origins = {sid: 1 / len(station_ids) for sid in station_ids}
            destinations = origins
        start_minute = min(max(start_minute, 0), 1439)
        duration = int(rng.gamma(2.0, 8.0)) + 2
        started = day + timedelta(minutes=start_minute)
        trips.append(
            Trip(
                started_at=started,
                ended_at=started + timedelta(minutes=duration),
                start_station_id=str(rng.choice(list(origins), p=list(origins.values()))),
                end_station_id=str(rng.choice(list(destinations), p=list(destinations.values()))),
                ride_id=f"SYN{idx:05d}",
            )
        )
    return TripStore(trips)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the station traffic pipeline on a synthetic day.")
    parser.add_argument("--num-trips", type=int, default=2000)
    parser.add_argument("--seed", type=int, help="Optional RNG seed for the synthetic trips")
    parser.add_argument("--config", help="Optional traffic map YAML")
    parser.add_argument(
        "--minutes",
        nargs="*",
        default=["-1", "08:30", "12:00", "17:30", "00:10"],
        help="Selections to evaluate (minute of day, HH:MM, or -1)",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = TrafficMapConfig.from_yaml(args.config) if args.config else TrafficMapConfig()
    controller = TrafficMapController(_build_catalog(), _build_trips(args.num_trips, args.seed), config=config)

    print("=== Station Traffic Smoke Test ===")
    print(f"Trips: {len(controller.trips):,}  Stations: {len(controller.catalog)}")
    print(f"Radius domain: {controller.radius_domain}")
    for value in args.minutes:
        payload = controller.on_selection_change(value)
        print("")
        print(f"{payload.selection.label} (radius range {payload.radius_range}):")
        for marker in sorted(payload.markers, key=lambda m: m.total_traffic, reverse=True):
            print(
                f"  {marker.name or marker.id:<18} total={marker.total_traffic:>4} "
                f"radius={marker.radius:5.1f} flow={marker.flow_level}"
            )


if __name__ == "__main__":
    main()
