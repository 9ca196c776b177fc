"""
Short-horizon trend forecast:
- Moving average over the most recent points
- Linear drift from the last two points, damped per hour ahead
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Sequence

import numpy as np

from config import DRIFT_WEIGHT, FORECAST_WINDOW
from models import ForecastPoint, SeriesPoint


def recent_average(values: np.ndarray, window: int = FORECAST_WINDOW) -> float:
    window = int(max(1, window))
    return float(np.mean(values[-window:]))


def last_drift(values: np.ndarray) -> float:
    if values.size < 2:
        return 0.0
    return float(values[-1] - values[-2])


def forecast(
    series: Sequence[SeriesPoint],
    horizon_hours: int,
    *,
    window: int = FORECAST_WINDOW,
    drift_weight: float = DRIFT_WEIGHT,
) -> List[ForecastPoint]:
    """
    Project `horizon_hours` hourly values past the last point of `series`.

    The horizon is not clamped here; 0 gives an empty list.
    """
    if not series:
        raise ValueError("Cannot forecast from an empty series.")

    values = np.asarray([p.value for p in series], dtype=float)
    avg = recent_average(values, window)
    drift = last_drift(values)
    last_ts = series[-1].ts_utc

    out: List[ForecastPoint] = []
    for h in range(1, int(horizon_hours) + 1):
        value = max(0.0, avg + h * drift_weight * drift)
        out.append(ForecastPoint(ts_utc=last_ts + timedelta(hours=h), value=round(value, 1)))
    return out
