"""
Reduce raw observations into a chronological series and per-location averages.

Observations with a missing, non-numeric or non-finite value, or with a
timestamp that does not parse, are dropped. Observations without usable
coordinates still contribute to the series but not to the map locations.
The upstream source is expected to deliver observations sorted by time;
the input order is kept as-is.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

import pandas as pd

from models import LocationAverage, Observation, SeriesPoint


# 4 decimal degrees ~ 11 m grid.
COORD_DECIMALS = 4

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class Aggregation(NamedTuple):
    series: List[SeriesPoint]
    locations: List[LocationAverage]


def as_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or not isinstance(raw, numbers.Real):
        return None
    x = float(raw)
    return x if math.isfinite(x) else None


def parse_timestamp(raw: Any) -> Optional[pd.Timestamp]:
    """
    Parse an absolute instant: an ISO 8601 string or a datetime. Relative
    tokens ("now", "today") and bare epoch numbers are rejected.
    """
    if raw is None or isinstance(raw, (bool, numbers.Number)):
        return None
    try:
        if isinstance(raw, str):
            if not _ISO_DATE.match(raw.strip()):
                return None
            ts = pd.to_datetime(raw.strip(), format="ISO8601", utc=True)
        else:
            ts = pd.Timestamp(raw)
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _optional(x: Any) -> Optional[float]:
    if x is None or pd.isna(x):
        return None
    return float(x)


def observations_frame(observations: Iterable[Union[Observation, Mapping[str, Any]]]) -> pd.DataFrame:
    """
    Validate observations into a frame with columns ts, value, latitude, longitude.
    Row order follows the input order.
    """
    rows = []
    for obs in observations:
        if isinstance(obs, Mapping):
            obs = Observation.from_record(obs)
        ts = parse_timestamp(obs.timestamp)
        value = as_number(obs.value)
        if ts is None or value is None:
            continue
        rows.append(
            {
                "ts": ts,
                "value": value,
                "latitude": as_number(obs.latitude),
                "longitude": as_number(obs.longitude),
            }
        )
    return pd.DataFrame(rows, columns=["ts", "value", "latitude", "longitude"])


def _series(df: pd.DataFrame) -> List[SeriesPoint]:
    return [
        SeriesPoint(
            ts_utc=row.ts.to_pydatetime(),
            value=float(row.value),
            latitude=_optional(row.latitude),
            longitude=_optional(row.longitude),
        )
        for row in df.itertuples(index=False)
    ]


def _locations(df: pd.DataFrame) -> List[LocationAverage]:
    located = df.dropna(subset=["latitude", "longitude"])
    if located.empty:
        return []

    fmt = "{:.%df}" % COORD_DECIMALS
    key = located["latitude"].map(fmt.format) + "," + located["longitude"].map(fmt.format)

    # Each cell is reported at its first observation's raw coordinates.
    grouped = located.groupby(key, sort=False).agg(
        latitude=("latitude", "first"),
        longitude=("longitude", "first"),
        total=("value", "sum"),
        n=("value", "size"),
    )
    return [
        LocationAverage(
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            average=float(row["total"]) / int(row["n"]),
            count=int(row["n"]),
        )
        for _, row in grouped.iterrows()
    ]


def aggregate(observations: Iterable[Union[Observation, Mapping[str, Any]]]) -> Aggregation:
    """
    Build the series and location averages. Empty or fully-filtered input
    yields an empty Aggregation; the caller decides on a fallback.
    """
    df = observations_frame(observations)
    if df.empty:
        return Aggregation(series=[], locations=[])
    return Aggregation(series=_series(df), locations=_locations(df))


def is_chronological(series: Sequence[SeriesPoint]) -> bool:
    return all(a.ts_utc <= b.ts_utc for a, b in zip(series, series[1:]))
