from __future__ import annotations

import math

import pytest

from stationflow.catalog.domain_types import Station
from stationflow.traffic.traffic_aggregator import StationTraffic
from stationflow.traffic.visual_scales import (
    FlowLevel,
    QuantizeScale,
    SqrtScale,
    departure_flow,
    radius_scale_for,
)


def test_sqrt_scale_endpoints_and_midpoint():
    scale = SqrtScale(domain=(0, 100), range=(0, 25))
    assert scale(0) == pytest.approx(0.0)
    assert scale(100) == pytest.approx(25.0)
    assert scale(25) == pytest.approx(12.5)


def test_sqrt_scale_is_monotonic_for_fixed_domain():
    scale = radius_scale_for(400, (3, 50))
    radii = [scale(total) for total in range(0, 401, 7)]
    assert radii == sorted(radii)


def test_sqrt_scale_with_range_keeps_domain():
    scale = SqrtScale(domain=(0, 16), range=(0, 25))
    filtered = scale.with_range((3, 50))
    assert filtered.domain == scale.domain
    assert filtered(0) == pytest.approx(3.0)
    assert filtered(4) == pytest.approx(3.0 + 47.0 * 0.5)


def test_sqrt_scale_extrapolates_beyond_domain():
    scale = SqrtScale(domain=(0, 4), range=(0, 10))
    assert scale(16) == pytest.approx(20.0)


def test_sqrt_scale_degenerate_domain_maps_to_range_midpoint():
    scale = radius_scale_for(0, (3, 50))
    assert scale(0) == pytest.approx(26.5)


def test_sqrt_scale_rejects_negative_input():
    with pytest.raises(ValueError):
        SqrtScale(domain=(0, 10), range=(0, 25))(-1)


@pytest.mark.parametrize(
    "ratio, bucket",
    [
        (0.0, 0.0),
        (0.2, 0.0),
        (1 / 3, 0.5),
        (0.5, 0.5),
        (0.66, 0.5),
        (2 / 3, 1.0),
        (1.0, 1.0),
        (-0.5, 0.0),
        (1.5, 1.0),
    ],
)
def test_quantize_scale_buckets(ratio, bucket):
    assert QuantizeScale()(ratio) == FlowLevel(bucket)


def test_quantize_scale_nan_is_undefined():
    level = QuantizeScale()(math.nan)
    assert not level.is_defined
    assert level == FlowLevel.undefined()


def test_quantize_scale_validation():
    with pytest.raises(ValueError):
        QuantizeScale(domain=(1, 0))
    with pytest.raises(ValueError):
        QuantizeScale(buckets=())


def test_departure_flow_handles_zero_traffic_explicitly():
    station = Station(id="A", lat=0.0, lon=0.0)
    scale = QuantizeScale()
    assert departure_flow(StationTraffic(station), scale) == FlowLevel.undefined()
    assert departure_flow(StationTraffic(station, arrivals=1, departures=3), scale) == FlowLevel(1.0)
    assert departure_flow(StationTraffic(station, arrivals=3, departures=1), scale) == FlowLevel(0.0)
    assert departure_flow(StationTraffic(station, arrivals=1, departures=1), scale) == FlowLevel(0.5)
