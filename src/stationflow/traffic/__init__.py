"""Time filtering, traffic aggregation, and visual scales."""

from .time_window import (
    DEFAULT_WINDOW_MINUTES,
    UNFILTERED_MINUTE,
    TimeSelection,
    filter_trips_by_time,
    format_clock,
    parse_clock,
)
from .traffic_aggregator import StationTraffic, StationTrafficAggregate, compute_station_traffic
from .visual_scales import (
    FILTERED_RADIUS_RANGE,
    FLOW_BUCKETS,
    UNFILTERED_RADIUS_RANGE,
    FlowLevel,
    QuantizeScale,
    SqrtScale,
    departure_flow,
    radius_scale_for,
)

__all__ = [
    "DEFAULT_WINDOW_MINUTES",
    "FILTERED_RADIUS_RANGE",
    "FLOW_BUCKETS",
    "FlowLevel",
    "QuantizeScale",
    "SqrtScale",
    "StationTraffic",
    "StationTrafficAggregate",
    "TimeSelection",
    "UNFILTERED_MINUTE",
    "UNFILTERED_RADIUS_RANGE",
    "compute_station_traffic",
    "departure_flow",
    "filter_trips_by_time",
    "format_clock",
    "parse_clock",
    "radius_scale_for",
]
