"""
Synthetic fallback data used when no real observations are available.

Generates plausible hourly values with:
- A per-pollutant baseline (typical ambient level)
- A slow sinusoid (amplitude 4)
- Uniform noise in [-1, +1]

Values are for display only, not a model of real air quality.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import math
import random
from typing import List, Optional, Protocol, Tuple, Union

from aqi import PollutantKind
from models import LocationAverage, SeriesPoint


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float:
        ...


BASELINES = {
    PollutantKind.PM25: 22.0,
    PollutantKind.PM10: 35.0,
    PollutantKind.NO2: 18.0,
    PollutantKind.O3: 18.0,
}

WAVE_AMPLITUDE = 4.0
# sin(i / WAVE_DIVISOR), i = hours before now
WAVE_DIVISOR = 3.0
NOISE = 1.0


def baseline_for(kind: Union[str, PollutantKind, None]) -> float:
    return BASELINES[PollutantKind.parse(kind)]


def synthesize(
    kind: Union[str, PollutantKind, None],
    hours: int,
    now: Optional[datetime] = None,
    *,
    rng: Optional[RandomSource] = None,
) -> List[SeriesPoint]:
    """
    Produce `hours` hourly points ending at `now`, oldest first.

    `rng` only needs `uniform(a, b)`; pass a seeded random.Random for
    repeatable output.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if rng is None:
        rng = random.Random()

    base = baseline_for(kind)
    series: List[SeriesPoint] = []
    for i in range(int(hours) - 1, -1, -1):
        wave = math.sin(i / WAVE_DIVISOR) * WAVE_AMPLITUDE
        value = max(0.0, base + wave + rng.uniform(-NOISE, NOISE))
        series.append(SeriesPoint(ts_utc=now - timedelta(hours=i), value=round(value, 1)))
    return series


def synthesize_locations(
    kind: Union[str, PollutantKind, None],
    center: Tuple[float, float],
    *,
    rng: Optional[RandomSource] = None,
) -> List[LocationAverage]:
    """
    Two placeholder map markers scattered around the center.
    """
    if rng is None:
        rng = random.Random()

    base = baseline_for(kind)
    lat, lon = center

    def jitter(span: float) -> float:
        return rng.uniform(-span / 2, span / 2)

    return [
        LocationAverage(lat + jitter(0.05), lon + jitter(0.05), round(base + 2, 1)),
        LocationAverage(lat + jitter(0.1), lon + jitter(0.1), round(base + 5, 1)),
    ]
