"""
Request defaults and bounds shared by the pipeline and the CLI.
"""

from __future__ import annotations

from typing import Tuple


DEFAULT_CITY = "Los Angeles"
# Used whenever the location resolver cannot place the city.
DEFAULT_CENTER: Tuple[float, float] = (34.0522, -118.2437)

SEARCH_RADIUS_M = 50_000
MEASUREMENT_LIMIT = 1000

DEFAULT_HOURS = 24
HOURS_BOUNDS = (1, 168)

DEFAULT_HORIZON = 6
HORIZON_BOUNDS = (1, 48)

DEFAULT_LOOKBACK = 24
LOOKBACK_BOUNDS = (6, 168)

# Trend forecaster: mean of the last N points plus a damped drift per hour.
FORECAST_WINDOW = 12
DRIFT_WEIGHT = 0.25

# Built-in gazetteer for the offline CLI.
KNOWN_PLACES = {
    "Los Angeles": (34.0522, -118.2437),
    "New York": (40.7128, -74.0060),
    "London": (51.5072, -0.1276),
    "Delhi": (28.6139, 77.2090),
    "Beijing": (39.9042, 116.4074),
    "Sydney": (-33.8688, 151.2093),
}
