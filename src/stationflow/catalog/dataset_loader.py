"""Loads the station catalog and trip log together before any aggregation."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter

from .station_catalog import StationCatalog
from .trip_store import TripStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrafficDatasets:
    """Both source datasets, only ever constructed once each has loaded."""

    catalog: StationCatalog
    trips: TripStore


def load_datasets(stations_source: str | Path, trips_source: str | Path) -> TrafficDatasets:
    """Fetch both datasets concurrently and wait for both to finish.

    Any failure propagates to the caller, so partially loaded data is never
    handed to the aggregator.
    """
    started = perf_counter()
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="dataset-load") as pool:
        catalog_future = pool.submit(StationCatalog.from_json, stations_source)
        trips_future = pool.submit(TripStore.from_csv, trips_source)
        catalog = catalog_future.result()
        trips = trips_future.result()
    logger.info(
        "Datasets ready in %.2fs: %d stations, %d trips",
        perf_counter() - started,
        len(catalog),
        len(trips),
    )
    return TrafficDatasets(catalog=catalog, trips=trips)


__all__ = ["TrafficDatasets", "load_datasets"]
