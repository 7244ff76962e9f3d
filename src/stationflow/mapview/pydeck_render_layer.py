"""pydeck adapter that draws station markers over bike-lane overlays."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pandas as pd
import pydeck as pdk

from stationflow.traffic.visual_scales import FlowLevel

from .map_config import BikeLaneOverlay, TrafficMapConfig
from .render_payload import RenderPayload

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

DEPARTURES_COLOR: RGB = (70, 130, 180)  # steelblue
ARRIVALS_COLOR: RGB = (255, 140, 0)  # darkorange
NO_TRAFFIC_COLOR: RGB = (160, 160, 160)
MARKER_ALPHA = 153  # 0.6 fill opacity
MAPBOX_TOKEN_ENV = "MAPBOX_API_KEY"


def hex_to_rgb(value: str) -> RGB:
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Expected a #RRGGBB colour, got {value!r}")
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError as exc:
        raise ValueError(f"Expected a #RRGGBB colour, got {value!r}") from exc


def flow_color(flow: FlowLevel) -> List[int]:
    """Blend departure/arrival colours by flow level; undefined flow is grey."""
    if not flow.is_defined:
        return [*NO_TRAFFIC_COLOR, MARKER_ALPHA]
    share = min(max(float(flow.bucket), 0.0), 1.0)
    mixed = [
        round(dep * share + arr * (1.0 - share))
        for dep, arr in zip(DEPARTURES_COLOR, ARRIVALS_COLOR)
    ]
    return [*mixed, MARKER_ALPHA]


class PydeckRenderLayer:
    """Builds a :class:`pydeck.Deck` per payload and optionally writes it to HTML."""

    def __init__(
        self,
        config: TrafficMapConfig | None = None,
        *,
        output_html: str | Path | None = None,
        mapbox_token: str | None = None,
    ) -> None:
        self._config = config or TrafficMapConfig()
        self._output_html = Path(output_html) if output_html is not None else None
        self._mapbox_token = mapbox_token if mapbox_token is not None else os.getenv(MAPBOX_TOKEN_ENV, "")
        self.last_deck: Optional[pdk.Deck] = None
        self.render_count = 0

    def render(self, payload: RenderPayload) -> None:
        deck = self.build_deck(payload)
        self.last_deck = deck
        self.render_count += 1
        if self._output_html is not None:
            self._output_html.parent.mkdir(parents=True, exist_ok=True)
            deck.to_html(str(self._output_html), open_browser=False, notebook_display=False)
            logger.info("Wrote traffic map for %s to %s", payload.selection.label, self._output_html)

    def build_deck(self, payload: RenderPayload) -> pdk.Deck:
        layers = [_bike_lane_layer(lane) for lane in self._config.bike_lanes]
        layers.append(_station_layer(payload))
        view = self._config.map_view
        view_state = pdk.ViewState(
            latitude=view.center_lat,
            longitude=view.center_lon,
            zoom=view.zoom,
            min_zoom=view.min_zoom,
            max_zoom=view.max_zoom,
        )
        if self._mapbox_token:
            return pdk.Deck(
                layers=layers,
                initial_view_state=view_state,
                map_provider="mapbox",
                map_style=view.style,
                api_keys={"mapbox": self._mapbox_token},
                tooltip={"text": "{label}\n{tooltip}"},
            )
        logger.debug("No %s set; falling back to the default carto basemap", MAPBOX_TOKEN_ENV)
        return pdk.Deck(
            layers=layers,
            initial_view_state=view_state,
            map_provider="carto",
            map_style="light",
            tooltip={"text": "{label}\n{tooltip}"},
        )


def station_frame(payload: RenderPayload) -> pd.DataFrame:
    """Marker rows with the colour and tooltip columns the scatter layer reads."""
    df = payload.to_dataframe()
    df["label"] = [marker.name or marker.id for marker in payload.markers]
    df["tooltip"] = [marker.tooltip for marker in payload.markers]
    df["color"] = [flow_color(marker.flow_level) for marker in payload.markers]
    # JSON serialisation of the deck cannot carry NaN.
    df["flow_level"] = pd.Series(
        [marker.flow_level.bucket for marker in payload.markers], index=df.index, dtype=object
    )
    return df


def _station_layer(payload: RenderPayload) -> pdk.Layer:
    return pdk.Layer(
        "ScatterplotLayer",
        data=station_frame(payload),
        id="stations",
        get_position="[lon, lat]",
        get_radius="radius",
        radius_units="pixels",
        get_fill_color="color",
        get_line_color=[255, 255, 255],
        line_width_min_pixels=1,
        stroked=True,
        pickable=True,
    )


def _bike_lane_layer(lane: BikeLaneOverlay) -> pdk.Layer:
    red, green, blue = hex_to_rgb(lane.color)
    return pdk.Layer(
        "GeoJsonLayer",
        data=lane.url,
        id=f"{lane.name}-lanes",
        stroked=True,
        filled=False,
        get_line_color=[red, green, blue, round(255 * lane.opacity)],
        get_line_width=lane.width,
        line_width_units="pixels",
    )


def deck_layer_ids(deck: pdk.Deck) -> Sequence[str]:
    return [layer.id for layer in deck.layers]


__all__ = ["PydeckRenderLayer", "deck_layer_ids", "flow_color", "hex_to_rgb", "station_frame"]
