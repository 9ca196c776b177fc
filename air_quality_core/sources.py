"""
External collaborators of the pipeline: location resolvers and measurement sources.

A resolver is any callable ``name -> (lat, lon) | None``.
A measurement source is any object with ``fetch(query) -> iterable of records``
where a record is an Observation or an OpenAQ-shaped mapping. Sources signal
a non-success response with UpstreamError; the pipeline treats that, any
other exception, and an empty result alike as "no data".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

import numpy as np

from aggregator import as_number, parse_timestamp
from aqi import PollutantKind
from config import MEASUREMENT_LIMIT
from models import Observation


Coordinate = Tuple[float, float]
Record = Union[Observation, Mapping[str, Any]]

EARTH_RADIUS_KM = 6371.0


class UpstreamError(RuntimeError):
    """Non-success response from a measurement source or resolver."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(message or f"upstream returned status {status}")
        self.status = status


@dataclass(frozen=True)
class MeasurementQuery:
    center: Coordinate
    radius_m: float
    kind: PollutantKind
    date_from: datetime
    date_to: datetime
    limit: int = MEASUREMENT_LIMIT


class MeasurementSource(Protocol):
    def fetch(self, query: MeasurementQuery) -> Iterable[Record]:
        ...


def haversine_km(lat1: float, lon1: float, lat2: np.ndarray, lon2: np.ndarray) -> np.ndarray:
    """
    Great circle distance in kilometers from one point to many.
    """
    lat1_rad, lon1_rad = np.radians(lat1), np.radians(lon1)
    lat2_rad, lon2_rad = np.radians(lat2), np.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


class StaticGazetteer:
    """
    Case-insensitive in-memory resolver.
    """

    def __init__(self, places: Mapping[str, Coordinate]) -> None:
        self._places: Dict[str, Coordinate] = {
            name.strip().lower(): (float(lat), float(lon)) for name, (lat, lon) in places.items()
        }

    def __call__(self, name: str) -> Optional[Coordinate]:
        return self._places.get((name or "").strip().lower())


class OfflineSource:
    """No upstream configured: every query comes back empty."""

    def fetch(self, query: MeasurementQuery) -> List[Record]:
        return []


class JsonFileSource:
    """
    Serve measurements from an OpenAQ-shaped JSON export, either
    {"results": [...]} or a bare list of measurement records.

    Records are filtered by parameter, by the query window and by distance
    from the query center; records lacking the field in question pass that
    filter, and the aggregator decides whether they are usable.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> List[Mapping[str, Any]]:
        if not self.path.exists():
            raise UpstreamError(404, f"{self.path} not found")
        with self.path.open("r", encoding="utf-8") as fh:
            obj = json.load(fh)
        if isinstance(obj, Mapping):
            obj = obj.get("results") or []
        if not isinstance(obj, list):
            raise UpstreamError(502, f"{self.path}: expected a list of measurements")
        return [rec for rec in obj if isinstance(rec, Mapping)]

    def fetch(self, query: MeasurementQuery) -> List[Record]:
        records = [
            rec
            for rec in self._load()
            if rec.get("parameter") is None or str(rec["parameter"]).lower() == query.kind.value
        ]
        observations = [Observation.from_record(rec) for rec in records]

        date_from = parse_timestamp(query.date_from)
        date_to = parse_timestamp(query.date_to)
        in_window = []
        for obs in observations:
            ts = parse_timestamp(obs.timestamp)
            in_window.append(ts is None or date_from <= ts <= date_to)

        lat = np.array([_nan_if_none(as_number(o.latitude)) for o in observations], dtype=float)
        lon = np.array([_nan_if_none(as_number(o.longitude)) for o in observations], dtype=float)
        with np.errstate(invalid="ignore"):
            dist_m = haversine_km(query.center[0], query.center[1], lat, lon) * 1000.0
        in_radius = np.isnan(dist_m) | (dist_m <= query.radius_m)

        keep = [obs for obs, w, r in zip(observations, in_window, in_radius) if w and r]
        return keep[: max(0, int(query.limit))]


def _nan_if_none(x: Optional[float]) -> float:
    return float("nan") if x is None else x
