"""Selection-driven orchestration of filter, aggregation, and scales.

:class:`TrafficMapController` owns the station catalog, the trip log, and the
current time selection. Its single entry point, :meth:`on_selection_change`,
runs the full pipeline for the new selection and returns a fresh
:class:`RenderPayload`:

1. **Unfiltered** selections reuse the aggregate computed over every trip
   when the controller was built, drawn with the unfiltered radius range.
2. **Filtered** selections keep trips within the configured window of the
   chosen minute, re-aggregate them against the untouched catalog, and draw
   them with the filtered radius range.

The radius domain is fixed at ``[0, max total traffic]`` of the unfiltered
aggregate, so filtered views stay comparable with each other. Nothing is
cached between selections.

Example
-------
    datasets = load_datasets("stations.json", "trips.csv")
    controller = TrafficMapController(datasets.catalog, datasets.trips)
    payload = controller.on_selection_change("08:00")
    payload.marker("A32000").tooltip  # "N trips (d departures, a arrivals)"
"""

from __future__ import annotations

import logging
from typing import Sequence

from stationflow.catalog.domain_types import Station, Trip
from stationflow.traffic.time_window import TimeSelection, filter_trips_by_time
from stationflow.traffic.traffic_aggregator import (
    StationTrafficAggregate,
    compute_station_traffic,
)
from stationflow.traffic.visual_scales import (
    QuantizeScale,
    SqrtScale,
    departure_flow,
    radius_scale_for,
)

from .map_config import TrafficMapConfig
from .render_payload import RenderLayer, RenderPayload, StationMarker

logger = logging.getLogger(__name__)


class TrafficMapController:
    """Recomputes station markers whenever the time selection changes."""

    def __init__(
        self,
        catalog: Sequence[Station],
        trips: Sequence[Trip],
        *,
        config: TrafficMapConfig | None = None,
        render_layer: RenderLayer | None = None,
    ) -> None:
        self._catalog = catalog
        self._trips = trips
        self._config = config or TrafficMapConfig()
        self._render_layer = render_layer
        self._selection = TimeSelection.unfiltered()

        self._global_aggregate = compute_station_traffic(self._catalog, self._trips)
        self._radius_scale = radius_scale_for(
            self._global_aggregate.max_total_traffic(),
            self._config.unfiltered_radius_range,
        )
        self._flow_scale = QuantizeScale(domain=(0.0, 1.0), buckets=self._config.flow_buckets)
        logger.info(
            "Traffic map ready: %d stations, %d trips, busiest station total=%d",
            len(self._catalog),
            len(self._trips),
            self._global_aggregate.max_total_traffic(),
        )

    # --------------------------------------------------------------- properties
    @property
    def config(self) -> TrafficMapConfig:
        return self._config

    @property
    def catalog(self) -> Sequence[Station]:
        return self._catalog

    @property
    def trips(self) -> Sequence[Trip]:
        return self._trips

    @property
    def selection(self) -> TimeSelection:
        return self._selection

    @property
    def state(self) -> str:
        return "filtered" if self._selection.is_filtered else "unfiltered"

    @property
    def global_aggregate(self) -> StationTrafficAggregate:
        return self._global_aggregate

    @property
    def radius_domain(self) -> tuple[float, float]:
        return self._radius_scale.domain

    # ---------------------------------------------------------------------- API
    def initial_payload(self) -> RenderPayload:
        """Render the unfiltered view, as on first load."""
        return self.on_selection_change(TimeSelection.unfiltered())

    def on_selection_change(self, value: object) -> RenderPayload:
        """Recompute every station marker for ``value`` and notify the render layer."""
        selection = TimeSelection.parse(value)
        aggregate = self.aggregate_for(selection)
        radius_scale = self.radius_scale_for(selection)
        payload = RenderPayload(
            selection=selection,
            markers=tuple(_build_markers(aggregate, radius_scale, self._flow_scale)),
            radius_range=radius_scale.range,
        )
        self._selection = selection
        logger.debug(
            "Selection %s -> %d markers (radius range %s)",
            selection.label,
            len(payload.markers),
            payload.radius_range,
        )
        if self._render_layer is not None:
            self._render_layer.render(payload)
        return payload

    def aggregate_for(self, selection: TimeSelection | int) -> StationTrafficAggregate:
        selection = TimeSelection.parse(selection)
        if not selection.is_filtered:
            return self._global_aggregate
        subset = filter_trips_by_time(self._trips, selection, self._config.window_minutes)
        return compute_station_traffic(self._catalog, subset)

    def radius_scale_for(self, selection: TimeSelection | int) -> SqrtScale:
        selection = TimeSelection.parse(selection)
        if selection.is_filtered:
            return self._radius_scale.with_range(self._config.filtered_radius_range)
        return self._radius_scale.with_range(self._config.unfiltered_radius_range)


def _build_markers(
    aggregate: StationTrafficAggregate, radius_scale: SqrtScale, flow_scale: QuantizeScale
):
    for traffic in aggregate:
        station = traffic.station
        yield StationMarker(
            id=station.id,
            lat=station.lat,
            lon=station.lon,
            radius=radius_scale(traffic.total_traffic),
            flow_level=departure_flow(traffic, flow_scale),
            total_traffic=traffic.total_traffic,
            arrivals=traffic.arrivals,
            departures=traffic.departures,
            name=station.name,
        )


__all__ = ["TrafficMapController"]
