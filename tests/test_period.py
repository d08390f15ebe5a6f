import math

import pytest

from bta_workload.period import (
    compute_weekly_hours,
    normalize_period_settings,
    parse_period,
    period_divisor,
)
from bta_workload.schema import Period, PeriodSettings


def test_weekly_total_passes_through(settings):
    assert compute_weekly_hours(4, 2.5, Period.WEEKLY, settings) == pytest.approx(10)


def test_semester_total_is_spread_over_semester_weeks(settings):
    assert compute_weekly_hours(28, 1, Period.SEMESTER, settings) == pytest.approx(2)


def test_yearly_total_is_spread_over_year_weeks(settings):
    assert compute_weekly_hours(52, 1.5, Period.YEARLY, settings) == pytest.approx(1.5)


@pytest.mark.parametrize("weeks", [0, -3])
def test_non_positive_semester_weeks_use_divisor_of_one(weeks):
    settings = PeriodSettings(semester_weeks=weeks, year_weeks=52)
    assert compute_weekly_hours(10, 1, Period.SEMESTER, settings) == pytest.approx(10)


def test_non_positive_year_weeks_use_divisor_of_one():
    settings = PeriodSettings(semester_weeks=14, year_weeks=0)
    assert compute_weekly_hours(6, 2, Period.YEARLY, settings) == pytest.approx(12)


@pytest.mark.parametrize(
    "quantity, rate",
    [
        (math.nan, 1.0),
        (1.0, math.inf),
        (-math.inf, 2.0),
        (None, 2.0),
        (3.0, None),
        ("4", 1.0),
    ],
)
def test_non_finite_inputs_yield_zero(quantity, rate, settings):
    for period in Period:
        result = compute_weekly_hours(quantity, rate, period, settings)
        assert result == 0.0
        assert math.isfinite(result)


@pytest.mark.parametrize("quantity, rate", [(1, 1), (3.5, 2.0), (12, 0.75), (0, 5)])
def test_weekly_is_identity_for_any_settings(quantity, rate):
    for settings in (PeriodSettings(), PeriodSettings(0, 0), PeriodSettings(16, 48)):
        assert compute_weekly_hours(quantity, rate, Period.WEEKLY, settings) == quantity * rate


def test_period_divisor_matches_guard():
    settings = PeriodSettings(semester_weeks=0, year_weeks=48)
    assert period_divisor(Period.WEEKLY, settings) == 1
    assert period_divisor(Period.SEMESTER, settings) == 1
    assert period_divisor(Period.YEARLY, settings) == 48


def test_normalize_period_settings_defaults_missing_and_invalid_values():
    assert normalize_period_settings(None) == PeriodSettings(14, 52)
    assert normalize_period_settings({}) == PeriodSettings(14, 52)
    assert normalize_period_settings({"semesterWeeks": 0, "yearWeeks": "abc"}) == PeriodSettings(14, 52)
    assert normalize_period_settings({"semesterWeeks": 16, "yearWeeks": 48}) == PeriodSettings(16, 48)


def test_normalize_period_settings_uses_given_defaults():
    defaults = PeriodSettings(15, 50)
    assert normalize_period_settings({"semesterWeeks": -1}, defaults) == PeriodSettings(15, 50)


def test_parse_period_falls_back_to_weekly():
    assert parse_period("Tahunan") is Period.YEARLY
    assert parse_period(Period.SEMESTER) is Period.SEMESTER
    assert parse_period("Monthly") is Period.WEEKLY
    assert parse_period(None) is Period.WEEKLY


def test_overflowing_product_yields_zero(settings):
    for period in Period:
        assert compute_weekly_hours(1e308, 10.0, period, settings) == 0.0


@pytest.mark.parametrize("weeks", [math.inf, -math.inf, math.nan, 1e400])
def test_non_finite_week_counts_fall_back_to_defaults(weeks):
    raw = {"semesterWeeks": weeks, "yearWeeks": weeks}
    assert normalize_period_settings(raw) == PeriodSettings(14, 52)
