"""Map orchestration, render adapters, configuration, and CLI."""

from .map_config import BikeLaneOverlay, MapView, TrafficMapConfig
from .render_payload import RenderLayer, RenderPayload, StationMarker
from .traffic_map_controller import TrafficMapController

__all__ = [
    "BikeLaneOverlay",
    "MapView",
    "PydeckRenderLayer",
    "RenderLayer",
    "RenderPayload",
    "StationMarker",
    "TrafficMapConfig",
    "TrafficMapController",
]


def __getattr__(name):
    if name == "PydeckRenderLayer":
        from .pydeck_render_layer import PydeckRenderLayer

        return PydeckRenderLayer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
