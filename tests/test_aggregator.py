from datetime import datetime, timezone
import math

from aggregator import aggregate, is_chronological, parse_timestamp
from models import Observation


def _obs(hour, value, lat=None, lon=None):
    return Observation(f"2024-05-01T{hour:02d}:00:00Z", value, lat, lon)


def test_empty_input():
    series, locations = aggregate([])
    assert series == []
    assert locations == []


def test_same_grid_cell_is_averaged():
    result = aggregate(
        [
            _obs(0, 10.0, 34.05001, -118.24001),
            _obs(1, 20.0, 34.05002, -118.24002),
        ]
    )
    assert len(result.locations) == 1
    loc = result.locations[0]
    assert loc.average == 15.0
    assert loc.count == 2
    # reported at the first observation's coordinates
    assert (loc.latitude, loc.longitude) == (34.05001, -118.24001)


def test_distinct_cells_keep_first_seen_order():
    result = aggregate(
        [
            _obs(0, 5.0, 34.1, -118.3),
            _obs(1, 7.0, 34.0, -118.2),
            _obs(2, 9.0, 34.1, -118.3),
        ]
    )
    assert [(loc.latitude, loc.average) for loc in result.locations] == [(34.1, 7.0), (34.0, 7.0)]
    assert [loc.count for loc in result.locations] == [2, 1]


def test_unusable_values_are_dropped():
    result = aggregate(
        [
            _obs(0, 10.0),
            _obs(1, float("nan")),
            _obs(2, None),
            _obs(3, "12"),
            _obs(4, True),
            _obs(5, math.inf),
            Observation("not a date", 3.0),
            Observation(None, 3.0),
            _obs(6, 11),
        ]
    )
    assert [p.value for p in result.series] == [10.0, 11.0]


def test_everything_filtered_out_is_empty():
    result = aggregate([_obs(0, float("nan")), Observation("not-a-timestamp", 1.0)])
    assert result.series == []
    assert result.locations == []


def test_missing_coordinates_only_skip_locations():
    result = aggregate(
        [
            _obs(0, 10.0, 34.05, -118.24),
            _obs(1, 30.0),
            _obs(2, 50.0, 34.05, None),
            _obs(3, 70.0, float("nan"), -118.24),
        ]
    )
    assert [p.value for p in result.series] == [10.0, 30.0, 50.0, 70.0]
    assert len(result.locations) == 1
    assert result.locations[0].average == 10.0
    assert result.series[0].latitude == 34.05
    assert result.series[1].latitude is None


def test_input_order_is_kept_when_unsorted():
    result = aggregate([_obs(3, 1.0), _obs(1, 2.0), _obs(2, 3.0)])
    assert [p.value for p in result.series] == [1.0, 2.0, 3.0]
    assert [p.ts_utc.hour for p in result.series] == [3, 1, 2]
    assert not is_chronological(result.series)


def test_duplicate_timestamps_are_kept():
    result = aggregate([_obs(1, 1.0), _obs(1, 2.0)])
    assert len(result.series) == 2
    assert is_chronological(result.series)


def test_accepts_openaq_records():
    records = [
        {
            "parameter": "pm25",
            "value": 8.5,
            "unit": "µg/m³",
            "date": {"utc": "2024-05-01T10:00:00Z", "local": "2024-05-01T03:00:00-07:00"},
            "coordinates": {"latitude": 34.0663, "longitude": -118.2266},
        },
        {"value": 9.5, "date": {"utc": "2024-05-01T11:00:00+00:00"}},
    ]
    result = aggregate(records)
    assert [p.value for p in result.series] == [8.5, 9.5]
    assert result.series[0].ts_utc == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert len(result.locations) == 1


def test_timestamps_normalized_to_utc():
    result = aggregate(
        [
            Observation("2024-05-01T03:00:00-07:00", 1.0),
            Observation(datetime(2024, 5, 1, 11), 2.0),
        ]
    )
    assert result.series[0].ts_utc == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert result.series[1].ts_utc == datetime(2024, 5, 1, 11, tzinfo=timezone.utc)


def test_bare_numbers_are_not_timestamps():
    assert parse_timestamp(1714557600) is None
    assert parse_timestamp("") is None


def test_aggregate_is_repeatable():
    observations = [_obs(0, 10.0, 34.05001, -118.24001), _obs(1, 20.0, 34.05002, -118.24002)]
    assert aggregate(observations) == aggregate(observations)


def test_relative_time_tokens_are_discarded():
    result = aggregate(
        [
            Observation("now", 3.0),
            Observation("today", 4.0),
            Observation("tomorrow", 5.0),
            Observation("May 1 2024", 6.0),
            _obs(7, 7.0),
        ]
    )
    assert [p.value for p in result.series] == [7.0]
    assert parse_timestamp("now") is None
    assert parse_timestamp(" 2024-05-01T07:00:00Z ") == parse_timestamp("2024-05-01T07:00:00Z")
