"""
AQI (Air Quality Index) calculation utilities.

Converts a raw pollutant concentration into an index value, a category label
and a severity tier using per-pollutant breakpoint tables (EPA-style scale,
0..500). The PM2.5 and PM10 tables follow the US EPA breakpoints; the O3 and
NO2 tables are simplified ug/m3 mappings.

Edge policy:
- Concentrations below the first tier snap to the first tier's floor.
- Concentrations in the gap between two tiers (e.g. PM2.5 35.45) belong to
  the upper tier and snap to its floor.
- Concentrations above the last tier clamp to the last tier's top index.
- Interpolated indices round half away from zero.
"""

from __future__ import annotations

from enum import Enum
import math
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Sequence, Tuple, Union


class PollutantKind(str, Enum):
    PM25 = "pm25"
    PM10 = "pm10"
    NO2 = "no2"
    O3 = "o3"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, token: Union[str, "PollutantKind", None]) -> "PollutantKind":
        """
        Normalize a request token. Unknown or empty tokens fall back to PM2.5.
        """
        if isinstance(token, PollutantKind):
            return token
        if token is None:
            return cls.PM25
        try:
            return cls(str(token).strip().lower())
        except ValueError:
            return cls.PM25


_LABELS = {
    PollutantKind.PM25: "PM2.5",
    PollutantKind.PM10: "PM10",
    PollutantKind.NO2: "NO2",
    PollutantKind.O3: "O3",
}


class Severity(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    USG = "usg"
    UNHEALTHY = "unhealthy"
    VERY_UNHEALTHY = "very_unhealthy"
    HAZARDOUS = "hazardous"


class Breakpoint(NamedTuple):
    c_lo: float
    c_hi: float
    i_lo: int
    i_hi: int
    category: str
    severity: Severity


class IndexResult(NamedTuple):
    aqi: int
    category: str
    severity: Severity

    def to_dict(self) -> dict:
        return {"aqi": self.aqi, "category": self.category, "severity": self.severity.value}


# Index ranges, labels and severities shared by every table.
_TIERS = (
    (0, 50, "Good", Severity.GOOD),
    (51, 100, "Moderate", Severity.MODERATE),
    (101, 150, "Unhealthy for Sensitive", Severity.USG),
    (151, 200, "Unhealthy", Severity.UNHEALTHY),
    (201, 300, "Very Unhealthy", Severity.VERY_UNHEALTHY),
    (301, 500, "Hazardous", Severity.HAZARDOUS),
)


def _table(concentrations: Sequence[Tuple[float, float]]) -> Tuple[Breakpoint, ...]:
    return tuple(
        Breakpoint(c_lo, c_hi, i_lo, i_hi, category, severity)
        for (c_lo, c_hi), (i_lo, i_hi, category, severity) in zip(concentrations, _TIERS)
    )


# US EPA PM2.5 (24-hour) breakpoints, ug/m3.
_PM25_BREAKPOINTS = _table(
    [
        (0.0, 12.0),
        (12.1, 35.4),
        (35.5, 55.4),
        (55.5, 150.4),
        (150.5, 250.4),
        (250.5, 500.4),
    ]
)

# US EPA PM10 (24-hour) breakpoints, ug/m3.
_PM10_BREAKPOINTS = _table(
    [
        (0, 54),
        (55, 154),
        (155, 254),
        (255, 354),
        (355, 424),
        (425, 604),
    ]
)

# Simplified; the real O3 index uses ppm and 8-hour averaging.
_O3_BREAKPOINTS = _table(
    [
        (0, 100),
        (101, 160),
        (161, 214),
        (215, 404),
        (405, 504),
        (505, 604),
    ]
)

# Simplified NO2 (ug/m3) mapping.
_NO2_BREAKPOINTS = _table(
    [
        (0, 40),
        (41, 90),
        (91, 120),
        (121, 230),
        (231, 340),
        (341, 1000),
    ]
)


def validate_table(table: Sequence[Breakpoint]) -> None:
    """
    Check that a breakpoint table is non-empty, ascending and non-overlapping.
    """
    if not table:
        raise ValueError("Breakpoint table is empty.")
    previous: Optional[Breakpoint] = None
    for bp in table:
        if bp.c_hi < bp.c_lo or bp.i_hi < bp.i_lo:
            raise ValueError(f"Inverted breakpoint range: {bp}")
        if previous is not None and bp.c_lo <= previous.c_hi:
            raise ValueError(f"Overlapping breakpoints: {previous} / {bp}")
        previous = bp


BREAKPOINT_TABLES: Mapping[PollutantKind, Tuple[Breakpoint, ...]] = MappingProxyType(
    {
        PollutantKind.PM25: _PM25_BREAKPOINTS,
        PollutantKind.PM10: _PM10_BREAKPOINTS,
        PollutantKind.O3: _O3_BREAKPOINTS,
        PollutantKind.NO2: _NO2_BREAKPOINTS,
    }
)

for _kind_table in BREAKPOINT_TABLES.values():
    validate_table(_kind_table)


def breakpoints_for(kind: Union[str, PollutantKind, None]) -> Tuple[Breakpoint, ...]:
    return BREAKPOINT_TABLES[PollutantKind.parse(kind)]


def round_half_up(x: float) -> int:
    """
    Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).
    """
    if x < 0:
        return -int(math.floor(-x + 0.5))
    return int(math.floor(x + 0.5))


def _interpolate(bp: Breakpoint, c: float) -> int:
    if bp.c_hi == bp.c_lo:
        return bp.i_hi
    # Linear interpolation:
    aqi = (bp.i_hi - bp.i_lo) / (bp.c_hi - bp.c_lo) * (c - bp.c_lo) + bp.i_lo
    return round_half_up(aqi)


def compute_index(kind: Union[str, PollutantKind, None], concentration: float) -> IndexResult:
    """
    Convert a concentration to an index via piecewise linear interpolation.

    The first tier whose upper bound covers the value is used; values under
    that tier's lower bound (below-range or inter-tier gap) snap up to it.
    """
    c = float(concentration)
    if math.isnan(c):
        raise ValueError("Concentration must be a number, got NaN.")

    table = breakpoints_for(kind)
    for bp in table:
        if c <= bp.c_hi:
            return IndexResult(_interpolate(bp, max(c, bp.c_lo)), bp.category, bp.severity)

    # Beyond defined range: clamp to the top of the last tier
    tail = table[-1]
    return IndexResult(tail.i_hi, tail.category, tail.severity)
