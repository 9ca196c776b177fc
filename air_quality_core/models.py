"""
Value types passed between the aggregator, simulator, forecaster and pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional


def isoformat_utc(ts: datetime) -> str:
    """
    Render an instant as e.g. 2024-05-01T13:00:00.000Z.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


@dataclass(frozen=True)
class Observation:
    """
    One raw reading as delivered by a measurement source. Fields are not
    validated here; the aggregator discards unusable observations.
    """

    timestamp: Any
    value: Any
    latitude: Any = None
    longitude: Any = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Observation":
        """
        Accept an OpenAQ v2 measurement ({"value", "date": {"utc"},
        "coordinates": {...}}) or a flat {"time", "value", "lat", "lon"} row.
        """
        date = record.get("date")
        if isinstance(date, Mapping):
            timestamp = date.get("utc")
        else:
            timestamp = _first(record, "timestamp", "time", "date")

        coords = record.get("coordinates")
        if isinstance(coords, Mapping):
            lat, lon = coords.get("latitude"), coords.get("longitude")
        else:
            lat = _first(record, "latitude", "lat")
            lon = _first(record, "longitude", "lon")

        return cls(timestamp=timestamp, value=record.get("value"), latitude=lat, longitude=lon)


@dataclass(frozen=True)
class SeriesPoint:
    ts_utc: datetime
    value: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> dict:
        out = {"time": isoformat_utc(self.ts_utc), "value": self.value}
        if self.latitude is not None and self.longitude is not None:
            out["lat"] = self.latitude
            out["lon"] = self.longitude
        return out


@dataclass(frozen=True)
class LocationAverage:
    latitude: float
    longitude: float
    average: float
    count: int = 1

    def to_dict(self) -> dict:
        return {"lat": self.latitude, "lon": self.longitude, "avg": self.average}


@dataclass(frozen=True)
class ForecastPoint:
    ts_utc: datetime
    value: float

    def to_dict(self) -> dict:
        return {"time": isoformat_utc(self.ts_utc), "value": self.value}
