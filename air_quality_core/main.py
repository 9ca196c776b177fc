"""
Command line entry point.

Builds the air quality report and trend forecast for one city and prints
them as a JSON document.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from typing import List, Optional

from config import DEFAULT_CITY, DEFAULT_HORIZON, DEFAULT_HOURS, KNOWN_PLACES
from pipeline import build_report, forecast_report
from sources import JsonFileSource, MeasurementSource, OfflineSource, StaticGazetteer


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Air quality index, map averages and short-term forecast")
    p.add_argument("--city", default=DEFAULT_CITY, help="Place name to look up")
    p.add_argument("--parameter", default="pm25", help="Pollutant: pm25, pm10, no2 or o3")
    p.add_argument("--hours", type=int, default=DEFAULT_HOURS, help="Lookback window (1-168 hours)")
    p.add_argument("--horizon", type=int, default=DEFAULT_HORIZON, help="Forecast horizon (1-48 hours)")
    p.add_argument("--observations", default=None, help="OpenAQ-shaped JSON export to read measurements from")
    p.add_argument("--seed", type=int, default=None, help="Random seed for synthesized fallback data")
    p.add_argument("--forecast-only", action="store_true", help="Print only the forecast document")
    p.add_argument("--log-level", default="INFO", help="Logging level")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )

    resolver = StaticGazetteer(KNOWN_PLACES)
    source: MeasurementSource = JsonFileSource(args.observations) if args.observations else OfflineSource()
    rng = random.Random(args.seed)

    report = build_report(args.city, args.parameter, args.hours, resolver=resolver, source=source, rng=rng)
    outlook = forecast_report(report, args.horizon)

    logging.info(
        "%s %s=%.1f | AQI=%d (%s) | %d points, %d locations | source=%s",
        report.city,
        report.kind.label,
        report.latest.value,
        report.index.aqi,
        report.index.category,
        len(report.series),
        len(report.locations),
        report.source.value,
    )

    if args.forecast_only:
        doc = outlook.to_dict()
    else:
        doc = {**report.to_dict(), "forecast": outlook.to_dict()}
    print(json.dumps(doc, indent=2))


if __name__ == "__main__":
    main()
