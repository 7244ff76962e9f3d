from __future__ import annotations

import csv
import json
from pathlib import Path

import pandas as pd
import pytest
import requests

from stationflow.catalog.dataset_loader import load_datasets
from stationflow.catalog.domain_types import TimestampError
from stationflow.catalog.sources import DEFAULT_TIMEOUT_S
from stationflow.catalog.station_catalog import StationCatalog
from stationflow.catalog.trip_store import TripStore


def _write_stations_json(path: Path, stations: list[dict]) -> None:
    path.write_text(json.dumps({"data": {"stations": stations}}), encoding="utf-8")


def _write_trips_csv(path: Path, rows: list[dict]) -> None:
    fieldnames = ["ride_id", "started_at", "ended_at", "start_station_id", "end_station_id"]
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def test_station_catalog_from_feed(tmp_path):
    feed = tmp_path / "stations.json"
    _write_stations_json(
        feed,
        [
            {"short_name": "A32000", "name": "Main St", "lat": 42.36, "lon": -71.09, "capacity": 19},
            {"short_name": "B32001", "lat": "42.35", "lon": "-71.10"},
        ],
    )

    catalog = StationCatalog.from_json(feed)

    assert catalog.station_ids == ["A32000", "B32001"]
    assert catalog.get("A32000").name == "Main St"
    assert catalog.get("A32000").capacity == 19
    assert catalog.get("B32001").lat == pytest.approx(42.35)
    assert "B32001" in catalog
    assert catalog.get("missing") is None


def test_station_catalog_accepts_bare_list():
    catalog = StationCatalog.from_payload([{"short_name": "A", "lat": 1, "lon": 2}])
    assert len(catalog) == 1
    assert catalog[0].id == "A"


@pytest.mark.parametrize(
    "records",
    [
        [{"short_name": "A", "lat": 1, "lon": 2}, {"short_name": "A", "lat": 3, "lon": 4}],
        [{"short_name": "A", "lat": None, "lon": 2}],
        [{"short_name": "A", "lat": "north", "lon": 2}],
        [{"lat": 1, "lon": 2}],
    ],
)
def test_station_catalog_rejects_bad_records(records):
    with pytest.raises(ValueError):
        StationCatalog.from_payload(records)


def test_station_catalog_requires_stations_section():
    with pytest.raises(ValueError):
        StationCatalog.from_payload({"data": {}})


def test_station_catalog_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        StationCatalog.from_json(tmp_path / "nope.json")


def test_trip_store_from_csv(tmp_path):
    trips_csv = tmp_path / "trips.csv"
    _write_trips_csv(
        trips_csv,
        [
            {
                "ride_id": "R1",
                "started_at": "2024-03-01 08:00:04.123",
                "ended_at": "2024-03-01 08:10:45",
                "start_station_id": "A32000",
                "end_station_id": "B32001",
            },
            {
                "ride_id": "R2",
                "started_at": "2024-03-02 23:59:00",
                "ended_at": "2024-03-03 00:15:00",
                "start_station_id": "B32001",
                "end_station_id": "",
            },
        ],
    )

    store = TripStore.from_csv(trips_csv)

    assert len(store) == 2
    assert store[0].ride_id == "R1"
    assert store[0].start_station_id == "A32000"
    assert store[1].end_station_id == ""
    assert list(store.start_minutes) == [480, 1439]
    assert list(store.end_minutes) == [490, 15]


def test_trip_store_keeps_leading_zero_station_ids():
    df = pd.DataFrame(
        {
            "started_at": ["2024-03-01 08:00:00"],
            "ended_at": ["2024-03-01 08:30:00"],
            "start_station_id": ["007"],
            "end_station_id": [None],
        }
    )
    store = TripStore.from_dataframe(df)
    assert store[0].start_station_id == "007"
    assert store[0].end_station_id == ""
    assert store[0].ride_id is None


def test_trip_store_rejects_unparseable_timestamps():
    df = pd.DataFrame(
        {
            "started_at": ["2024-03-01 08:00:00", "not a time"],
            "ended_at": ["2024-03-01 08:30:00", "2024-03-01 09:00:00"],
            "start_station_id": ["A", "B"],
            "end_station_id": ["B", "A"],
        }
    )
    with pytest.raises(TimestampError, match="started_at"):
        TripStore.from_dataframe(df)


def test_trip_store_requires_columns():
    df = pd.DataFrame({"started_at": ["2024-03-01 08:00:00"]})
    with pytest.raises(ValueError, match="ended_at"):
        TripStore.from_dataframe(df)


def test_load_datasets_joins_both_sources(tmp_path):
    feed = tmp_path / "stations.json"
    trips_csv = tmp_path / "trips.csv"
    _write_stations_json(feed, [{"short_name": "A", "lat": 42.0, "lon": -71.0}])
    _write_trips_csv(
        trips_csv,
        [
            {
                "ride_id": "R1",
                "started_at": "2024-03-01 08:00:00",
                "ended_at": "2024-03-01 08:10:00",
                "start_station_id": "A",
                "end_station_id": "A",
            }
        ],
    )

    datasets = load_datasets(feed, trips_csv)

    assert len(datasets.catalog) == 1
    assert len(datasets.trips) == 1


def test_load_datasets_propagates_failures(tmp_path):
    feed = tmp_path / "stations.json"
    _write_stations_json(feed, [{"short_name": "A", "lat": 42.0, "lon": -71.0}])
    with pytest.raises(FileNotFoundError):
        load_datasets(feed, tmp_path / "missing.csv")


def test_station_catalog_keeps_zero_short_name():
    catalog = StationCatalog.from_payload([{"short_name": 0, "id": "fallback", "lat": 1, "lon": 2}])
    assert catalog.station_ids == ["0"]


def test_trip_store_reads_wall_clock_across_dst_offsets():
    df = pd.DataFrame(
        {
            "started_at": ["2024-03-09T08:00:00-05:00", "2024-03-11T08:00:00-04:00"],
            "ended_at": ["2024-03-09T08:20:00-05:00", "2024-03-11T08:15:00-04:00"],
            "start_station_id": ["A", "B"],
            "end_station_id": ["B", "A"],
        }
    )

    store = TripStore.from_dataframe(df)

    assert list(store.start_minutes) == [480, 480]
    assert list(store.end_minutes) == [500, 495]
    assert store[0].started_at.tzinfo is None


def test_trip_store_strips_single_offset():
    df = pd.DataFrame(
        {
            "started_at": ["2024-03-01T17:30:00-05:00"],
            "ended_at": ["2024-03-01T17:45:00-05:00"],
            "start_station_id": ["A"],
            "end_station_id": ["B"],
        }
    )
    store = TripStore.from_dataframe(df)
    assert list(store.start_minutes) == [1050]


def test_trip_store_mixed_offsets_still_reject_garbage():
    df = pd.DataFrame(
        {
            "started_at": ["2024-03-09T08:00:00-05:00", "2024-03-11T08:00:00-04:00"],
            "ended_at": ["2024-03-09T08:20:00-05:00", "soon"],
            "start_station_id": ["A", "B"],
            "end_station_id": ["B", "A"],
        }
    )
    with pytest.raises(TimestampError, match="ended_at"):
        TripStore.from_dataframe(df)


# ---- http(s) sources


class _StubResponse:
    def __init__(self, *, payload=None, text="", status_code=200):
        self._payload = payload
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return self._payload


class _StubGet:
    def __init__(self, responses: dict):
        self.responses = responses
        self.calls = []

    def __call__(self, url, timeout=None):
        self.calls.append((url, timeout))
        return self.responses[url]


STATIONS_URL = "https://example.org/stations.json"
TRIPS_URL = "https://example.org/trips.csv"


def test_station_catalog_from_url(monkeypatch):
    stub = _StubGet(
        {
            STATIONS_URL: _StubResponse(
                payload={"data": {"stations": [{"short_name": "A", "lat": 42.0, "lon": -71.0}]}}
            )
        }
    )
    monkeypatch.setattr("stationflow.catalog.sources.requests.get", stub)

    catalog = StationCatalog.from_json(STATIONS_URL)

    assert isinstance(catalog, StationCatalog)
    assert catalog.station_ids == ["A"]
    assert stub.calls == [(STATIONS_URL, DEFAULT_TIMEOUT_S)]


def test_trip_store_from_url(monkeypatch):
    body = (
        "ride_id,started_at,ended_at,start_station_id,end_station_id\n"
        "R1,2024-03-01 08:00:00,2024-03-01 08:10:00,007,A\n"
    )
    stub = _StubGet({TRIPS_URL: _StubResponse(text=body)})
    monkeypatch.setattr("stationflow.catalog.sources.requests.get", stub)

    store = TripStore.from_csv(TRIPS_URL)

    assert len(store) == 1
    assert store[0].start_station_id == "007"
    assert stub.calls == [(TRIPS_URL, DEFAULT_TIMEOUT_S)]


def test_load_datasets_propagates_http_errors(tmp_path, monkeypatch):
    trips_csv = tmp_path / "trips.csv"
    _write_trips_csv(
        trips_csv,
        [
            {
                "ride_id": "R1",
                "started_at": "2024-03-01 08:00:00",
                "ended_at": "2024-03-01 08:10:00",
                "start_station_id": "A",
                "end_station_id": "A",
            }
        ],
    )
    stub = _StubGet({STATIONS_URL: _StubResponse(status_code=503)})
    monkeypatch.setattr("stationflow.catalog.sources.requests.get", stub)

    with pytest.raises(requests.HTTPError):
        load_datasets(STATIONS_URL, trips_csv)
