"""
Request handling: resolve the place, fetch and aggregate observations, fall
back to synthetic data when the upstream has nothing usable, then index the
latest value and project the trend.

Upstream problems never reach the caller. They are logged and recorded in
the report's ``source`` label instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

from aggregator import aggregate, is_chronological
from aqi import IndexResult, PollutantKind, compute_index
from config import (
    DEFAULT_CENTER,
    DEFAULT_CITY,
    DEFAULT_HORIZON,
    DEFAULT_HOURS,
    DEFAULT_LOOKBACK,
    HORIZON_BOUNDS,
    HOURS_BOUNDS,
    LOOKBACK_BOUNDS,
    MEASUREMENT_LIMIT,
    SEARCH_RADIUS_M,
)
from forecast import forecast
from models import ForecastPoint, LocationAverage, SeriesPoint
from simulator import RandomSource, synthesize, synthesize_locations
from sources import Coordinate, MeasurementQuery, MeasurementSource, Record, UpstreamError


logger = logging.getLogger(__name__)

Resolver = Callable[[str], Optional[Coordinate]]


class DataSource(str, Enum):
    OPENAQ = "openaq"
    MOCK_NONOK = "mock-nonok"
    MOCK_EMPTY = "mock-empty"
    MOCK_EXCEPTION = "mock-exception"

    @property
    def synthesized(self) -> bool:
        return self is not DataSource.OPENAQ


def clamp(value: Any, lo: int, hi: int, *, default: int) -> int:
    """
    Coerce a request parameter to an int within [lo, hi]; unparseable input
    becomes `default` before clamping.
    """
    try:
        n = int(float(value))
    except (TypeError, ValueError, OverflowError):
        n = default
    return min(max(n, lo), hi)


@dataclass(frozen=True)
class AirQualityReport:
    city: str
    kind: PollutantKind
    center: Coordinate
    series: List[SeriesPoint]
    locations: List[LocationAverage]
    latest: SeriesPoint
    index: IndexResult
    source: DataSource

    def to_dict(self) -> dict:
        return {
            "series": [p.to_dict() for p in self.series],
            "latest": self.latest.to_dict(),
            "locations": [loc.to_dict() for loc in self.locations],
            "parameter": self.kind.value,
            "city": self.city,
            "center": {"lat": self.center[0], "lon": self.center[1]},
            "source": self.source.value,
            "index": self.index.to_dict(),
        }


@dataclass(frozen=True)
class ForecastReport:
    city: str
    kind: PollutantKind
    forecasts: List[ForecastPoint]
    history: AirQualityReport

    def to_dict(self) -> dict:
        return {
            "forecasts": [p.to_dict() for p in self.forecasts],
            "parameter": self.kind.value,
            "city": self.city,
            "source": self.history.source.value,
        }


def resolve_center(resolver: Resolver, city: str) -> Coordinate:
    try:
        coord = resolver(city)
        if coord is not None:
            lat, lon = coord
            return float(lat), float(lon)
    except Exception as exc:
        logger.warning("Geocoding failed for %r: %s", city, exc)
    logger.info("No coordinates for %r; using default center %s", city, DEFAULT_CENTER)
    return DEFAULT_CENTER


def fetch_records(
    source: MeasurementSource, query: MeasurementQuery
) -> Tuple[List[Record], Optional[DataSource]]:
    """
    Run the source. Returns the records and, on failure, the fallback label.
    """
    try:
        records: Iterable[Record] = source.fetch(query)
        return list(records), None
    except UpstreamError as exc:
        logger.warning("Measurement source non-OK: %s (%s)", exc.status, exc)
        return [], DataSource.MOCK_NONOK
    except Exception as exc:
        logger.warning("Measurement source exception: %s", exc)
        return [], DataSource.MOCK_EXCEPTION


def _utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def build_report(
    city: Optional[str] = None,
    parameter: Optional[str] = None,
    hours: Any = DEFAULT_HOURS,
    *,
    resolver: Resolver,
    source: MeasurementSource,
    now: Optional[datetime] = None,
    rng: Optional[RandomSource] = None,
) -> AirQualityReport:
    """
    Series, map locations and current index for one place and pollutant.

    Always returns a non-empty series: real observations when the source
    delivers any usable ones, synthesized data otherwise.
    """
    city = (city or "").strip() or DEFAULT_CITY
    kind = PollutantKind.parse(parameter)
    hours = clamp(hours, *HOURS_BOUNDS, default=DEFAULT_HOURS)
    now = _utc(now)

    center = resolve_center(resolver, city)
    query = MeasurementQuery(
        center=center,
        radius_m=SEARCH_RADIUS_M,
        kind=kind,
        date_from=now - timedelta(hours=hours),
        date_to=now,
        limit=MEASUREMENT_LIMIT,
    )
    logger.info(
        "Air quality request: city=%s parameter=%s hours=%d center=(%.4f, %.4f) radius=%dm",
        city,
        kind.value,
        hours,
        center[0],
        center[1],
        SEARCH_RADIUS_M,
    )

    records, fallback = fetch_records(source, query)
    if fallback is None:
        series, locations = aggregate(records)
        if series:
            if not is_chronological(series):
                logger.warning("Upstream series for %s is not in time order; keeping source order", city)
            return _report(city, kind, center, series, locations, DataSource.OPENAQ)
        logger.info("Measurement source returned no usable observations; using fallback")
        fallback = DataSource.MOCK_EMPTY

    series = synthesize(kind, hours, now, rng=rng)
    locations = synthesize_locations(kind, center, rng=rng)
    return _report(city, kind, center, series, locations, fallback)


def _report(
    city: str,
    kind: PollutantKind,
    center: Coordinate,
    series: List[SeriesPoint],
    locations: List[LocationAverage],
    source: DataSource,
) -> AirQualityReport:
    latest = series[-1]
    return AirQualityReport(
        city=city,
        kind=kind,
        center=center,
        series=series,
        locations=locations,
        latest=latest,
        index=compute_index(kind, latest.value),
        source=source,
    )


def build_forecast(
    city: Optional[str] = None,
    parameter: Optional[str] = None,
    horizon: Any = DEFAULT_HORIZON,
    lookback: Any = DEFAULT_LOOKBACK,
    *,
    resolver: Resolver,
    source: MeasurementSource,
    now: Optional[datetime] = None,
    rng: Optional[RandomSource] = None,
) -> ForecastReport:
    lookback = clamp(lookback, *LOOKBACK_BOUNDS, default=DEFAULT_LOOKBACK)

    history = build_report(city, parameter, lookback, resolver=resolver, source=source, now=now, rng=rng)
    return forecast_report(history, horizon)


def forecast_report(history: AirQualityReport, horizon: Any = DEFAULT_HORIZON) -> ForecastReport:
    """
    Project the series of an existing report, so the forecast and the
    displayed history come from the same data.
    """
    horizon = clamp(horizon, *HORIZON_BOUNDS, default=DEFAULT_HORIZON)
    if history.source.synthesized:
        logger.info("Forecasting %s from a synthesized series (%s)", history.city, history.source.value)

    return ForecastReport(
        city=history.city,
        kind=history.kind,
        forecasts=forecast(history.series, horizon),
        history=history,
    )
