"""Scales mapping station traffic to marker radius and flow level."""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .traffic_aggregator import StationTraffic

UNFILTERED_RADIUS_RANGE: Tuple[float, float] = (0.0, 25.0)
FILTERED_RADIUS_RANGE: Tuple[float, float] = (3.0, 50.0)
FLOW_BUCKETS: Tuple[float, ...] = (0.0, 0.5, 1.0)


@dataclass(frozen=True)
class SqrtScale:
    """Square-root scale from ``domain`` onto ``range``; not clamped.

    A degenerate domain (both ends equal) maps every input to the middle of
    the output range.
    """

    domain: Tuple[float, float]
    range: Tuple[float, float]

    def __post_init__(self) -> None:
        d0, d1 = (float(value) for value in self.domain)
        r0, r1 = (float(value) for value in self.range)
        if d0 < 0 or d1 < 0:
            raise ValueError("Square-root scale domain must be non-negative.")
        object.__setattr__(self, "domain", (d0, d1))
        object.__setattr__(self, "range", (r0, r1))

    def __call__(self, value: float) -> float:
        if value < 0:
            raise ValueError(f"Square-root scale input must be non-negative: {value!r}")
        d0, d1 = self.domain
        r0, r1 = self.range
        lo, hi = math.sqrt(d0), math.sqrt(d1)
        if hi == lo:
            return r0 + (r1 - r0) * 0.5
        t = (math.sqrt(value) - lo) / (hi - lo)
        return r0 + (r1 - r0) * t

    def with_range(self, output_range: Sequence[float]) -> "SqrtScale":
        r0, r1 = output_range
        return SqrtScale(domain=self.domain, range=(r0, r1))


@dataclass(frozen=True)
class FlowLevel:
    """Quantized departure ratio; ``bucket`` is None when the ratio is undefined."""

    bucket: Optional[float] = None

    @classmethod
    def undefined(cls) -> "FlowLevel":
        return cls(None)

    @property
    def is_defined(self) -> bool:
        return self.bucket is not None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return "undefined" if self.bucket is None else f"{self.bucket:g}"


@dataclass(frozen=True)
class QuantizeScale:
    """Splits a continuous domain into equal segments, one per bucket."""

    domain: Tuple[float, float] = (0.0, 1.0)
    buckets: Tuple[float, ...] = FLOW_BUCKETS

    def __post_init__(self) -> None:
        d0, d1 = (float(value) for value in self.domain)
        if d1 <= d0:
            raise ValueError("Quantize scale domain must be increasing.")
        if not self.buckets:
            raise ValueError("Quantize scale needs at least one bucket.")
        object.__setattr__(self, "domain", (d0, d1))
        object.__setattr__(self, "buckets", tuple(float(b) for b in self.buckets))

    @property
    def thresholds(self) -> Tuple[float, ...]:
        d0, d1 = self.domain
        n = len(self.buckets)
        return tuple(d0 + (d1 - d0) * (i + 1) / n for i in range(n - 1))

    def __call__(self, value: float) -> FlowLevel:
        if value is None or math.isnan(value):
            return FlowLevel.undefined()
        # Values on a threshold fall into the upper bucket.
        index = bisect.bisect_right(self.thresholds, value)
        return FlowLevel(self.buckets[index])


def departure_flow(traffic: StationTraffic, scale: QuantizeScale) -> FlowLevel:
    """Quantize a station's departure share; zero traffic is explicitly undefined."""
    if traffic.total_traffic == 0:
        return FlowLevel.undefined()
    return scale(traffic.departure_ratio)


def radius_scale_for(max_total_traffic: int, output_range: Sequence[float]) -> SqrtScale:
    r0, r1 = output_range
    return SqrtScale(domain=(0.0, float(max_total_traffic)), range=(r0, r1))


__all__ = [
    "FILTERED_RADIUS_RANGE",
    "FLOW_BUCKETS",
    "FlowLevel",
    "QuantizeScale",
    "SqrtScale",
    "UNFILTERED_RADIUS_RANGE",
    "departure_flow",
    "radius_scale_for",
]
