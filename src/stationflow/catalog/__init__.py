"""Station catalog and trip log ingestion."""

from .dataset_loader import TrafficDatasets, load_datasets
from .domain_types import Station, TimestampError, Trip, minutes_since_midnight
from .station_catalog import StationCatalog
from .trip_store import TripStore

__all__ = [
    "Station",
    "StationCatalog",
    "TimestampError",
    "TrafficDatasets",
    "Trip",
    "TripStore",
    "load_datasets",
    "minutes_since_midnight",
]
