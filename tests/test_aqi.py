import math

import pytest

from aqi import (
    BREAKPOINT_TABLES,
    Breakpoint,
    PollutantKind,
    Severity,
    breakpoints_for,
    compute_index,
    round_half_up,
    validate_table,
)


def test_pm25_reference_values():
    assert compute_index(PollutantKind.PM25, 0) == (0, "Good", Severity.GOOD)
    assert compute_index(PollutantKind.PM25, 12.0) == (50, "Good", Severity.GOOD)
    assert compute_index(PollutantKind.PM25, 600) == (500, "Hazardous", Severity.HAZARDOUS)


def test_interpolates_inside_tier():
    # 49 / 23.3 * (20.0 - 12.1) + 51 = 67.61
    assert compute_index("pm25", 20.0).aqi == 68
    # 49 / 99 * (100 - 55) + 51 = 73.27
    assert compute_index("pm10", 100).aqi == 73
    assert compute_index("pm25", 12.1) == (51, "Moderate", Severity.MODERATE)
    assert compute_index("pm25", 35.4) == (100, "Moderate", Severity.MODERATE)


@pytest.mark.parametrize("kind", list(PollutantKind))
def test_every_tier_stays_within_its_index_range(kind):
    for bp in BREAKPOINT_TABLES[kind]:
        for c in (bp.c_lo, (bp.c_lo + bp.c_hi) / 2, bp.c_hi):
            result = compute_index(kind, c)
            assert bp.i_lo <= result.aqi <= bp.i_hi
            assert result.category == bp.category
            assert result.severity == bp.severity


@pytest.mark.parametrize("kind", list(PollutantKind))
def test_tier_edges_hit_index_bounds(kind):
    for bp in BREAKPOINT_TABLES[kind]:
        assert compute_index(kind, bp.c_lo).aqi == bp.i_lo
        assert compute_index(kind, bp.c_hi).aqi == bp.i_hi


def test_gap_between_tiers_belongs_to_upper_tier():
    # PM2.5 Moderate ends at 35.4, USG starts at 35.5
    assert compute_index("pm25", 35.45) == (101, "Unhealthy for Sensitive", Severity.USG)
    # PM10 Good ends at 54, Moderate starts at 55
    assert compute_index("pm10", 54.5) == (51, "Moderate", Severity.MODERATE)
    # NO2 USG ends at 120, Unhealthy starts at 121
    assert compute_index("no2", 120.9) == (151, "Unhealthy", Severity.UNHEALTHY)


def test_gap_value_is_not_treated_as_above_range():
    result = compute_index("pm25", 150.45)
    assert result.category == "Very Unhealthy"
    assert result.aqi == 201


def test_below_range_snaps_to_first_tier():
    assert compute_index("pm25", -5) == (0, "Good", Severity.GOOD)
    assert compute_index("o3", -0.1) == (0, "Good", Severity.GOOD)


def test_above_range_clamps_to_last_tier():
    assert compute_index("pm25", 500.4).aqi == 500
    assert compute_index("pm25", 500.5) == (500, "Hazardous", Severity.HAZARDOUS)
    assert compute_index("no2", 5000) == (500, "Hazardous", Severity.HAZARDOUS)
    assert compute_index("pm10", math.inf).aqi == 500


def test_ties_round_half_up():
    # NO2 Good: 50 / 40 * 2 = 2.5
    assert compute_index("no2", 2).aqi == 3
    # O3 Good: 50 / 100 * c
    assert compute_index("o3", 1).aqi == 1  # 0.5
    assert compute_index("o3", 3).aqi == 2  # 1.5
    assert compute_index("o3", 5).aqi == 3  # 2.5, ties-to-even would give 2


def test_round_half_up_helper():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4999) == 2
    assert round_half_up(-2.5) == -3
    assert round_half_up(0.0) == 0


def test_unknown_kind_uses_pm25_table():
    assert compute_index("so2", 12.0) == (50, "Good", Severity.GOOD)
    assert compute_index(None, 35.4).aqi == 100
    assert breakpoints_for("garbage") is BREAKPOINT_TABLES[PollutantKind.PM25]


def test_kind_tokens_are_case_insensitive():
    assert PollutantKind.parse("PM10") is PollutantKind.PM10
    assert PollutantKind.parse(" No2 ") is PollutantKind.NO2
    assert PollutantKind.parse("o3") is PollutantKind.O3
    assert PollutantKind.parse("") is PollutantKind.PM25
    assert PollutantKind.parse(PollutantKind.O3) is PollutantKind.O3
    assert PollutantKind.PM25.label == "PM2.5"


def test_nan_concentration_rejected():
    with pytest.raises(ValueError):
        compute_index("pm25", float("nan"))


def test_compute_index_is_repeatable():
    assert compute_index("pm10", 260) == compute_index("pm10", 260)


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        BREAKPOINT_TABLES[PollutantKind.PM25] = ()  # type: ignore[index]


class TestValidateTable:
    def test_accepts_builtin_tables(self):
        for table in BREAKPOINT_TABLES.values():
            validate_table(table)

    def test_rejects_overlap(self):
        table = [
            Breakpoint(0, 10, 0, 50, "Good", Severity.GOOD),
            Breakpoint(10, 20, 51, 100, "Moderate", Severity.MODERATE),
        ]
        with pytest.raises(ValueError):
            validate_table(table)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            validate_table([Breakpoint(10, 0, 0, 50, "Good", Severity.GOOD)])

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            validate_table([])
