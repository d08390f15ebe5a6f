"""
Pure period arithmetic for the workload calculator.

No I/O. Just:
- Conversion of a (quantity, rate, period) triple into weekly hours
- Normalization of user-supplied period settings
"""

from __future__ import annotations

import math
from typing import Any, Optional

from .schema import DEFAULT_PERIOD_SETTINGS, Period, PeriodSettings


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def compute_weekly_hours(
    quantity: Optional[float],
    jam_per_unit: Optional[float],
    period: Period,
    settings: PeriodSettings,
) -> float:
    """
    Convert a raw activity quantity into hours per week.

        total = quantity * jam_per_unit

    Weekly totals pass through; semester and yearly totals are divided by
    the configured number of weeks. A non-positive week count is treated as
    1. Non-finite or missing inputs, and products that overflow, yield 0.0
    so partially-filled drafts can be previewed.
    """
    if not _is_finite_number(quantity) or not _is_finite_number(jam_per_unit):
        return 0.0

    total = float(quantity) * float(jam_per_unit)
    if not math.isfinite(total):
        return 0.0
    return total / period_divisor(period, settings)


def period_divisor(period: Period, settings: PeriodSettings) -> int:
    """Number of weeks a total is spread over for display ("÷ n")."""
    if period == Period.SEMESTER:
        return settings.semester_weeks if settings.semester_weeks > 0 else 1
    if period == Period.YEARLY:
        return settings.year_weeks if settings.year_weeks > 0 else 1
    return 1


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return parsed if parsed > 0 else None


def normalize_period_settings(
    raw: Any,
    defaults: PeriodSettings = DEFAULT_PERIOD_SETTINGS,
) -> PeriodSettings:
    """
    Build PeriodSettings from a stored mapping or a PeriodSettings.

    Unset, non-numeric or non-positive values fall back to the defaults.
    """
    if isinstance(raw, PeriodSettings):
        semester, year = raw.semester_weeks, raw.year_weeks
    elif isinstance(raw, dict):
        semester = raw.get("semesterWeeks", raw.get("semester_weeks"))
        year = raw.get("yearWeeks", raw.get("year_weeks"))
    else:
        semester, year = None, None

    return PeriodSettings(
        semester_weeks=_positive_int(semester) or defaults.semester_weeks,
        year_weeks=_positive_int(year) or defaults.year_weeks,
    )


def parse_period(value: Any, default: Period = Period.WEEKLY) -> Period:
    """Map a stored period label onto the enum; unknown labels -> default."""
    if isinstance(value, Period):
        return value
    try:
        return Period(value)
    except (TypeError, ValueError):
        return default
