"""
Workload entry construction.

build_entry validates a selection and a quantity, then snapshots names,
rate and converted weekly hours into a WorkloadEntry. It never appends to a
collection; the caller owns the entry list.
"""

from __future__ import annotations

import math
import uuid
from typing import Any, Dict, List, Mapping, Optional

from .period import compute_weekly_hours
from .schema import (
    SUBCATEGORY_BY_CATEGORY,
    CatalogActivity,
    CatalogActivityOption,
    EntryError,
    EntryResult,
    Granularity,
    Period,
    PeriodSettings,
    WorkloadEntry,
)

ERROR_MESSAGES: Dict[EntryError, str] = {
    EntryError.MISSING_SELECTION: "Sila pilih aktiviti dan kategori aktiviti.",
    EntryError.NON_POSITIVE_QUANTITY: "Kuantiti mesti lebih daripada 0.",
    EntryError.INVALID_GRANULARITY: "Kuantiti mesti nombor bulat.",
}

HALF_STEP_MESSAGE = "Kuantiti mesti dalam gandaan 0.5."


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def format_quantity(quantity: float) -> str:
    return f"{quantity:g}"


def format_unit_label(label: str) -> str:
    """'bilangan pelajar' -> 'Bilangan Pelajar'."""
    return " ".join(word[:1].upper() + word[1:] for word in label.split(" "))


def is_valid_step(quantity: float, granularity: Granularity) -> bool:
    if granularity == Granularity.HALF:
        return (quantity * 2).is_integer()
    return quantity.is_integer()


def new_entry_id(category: Optional[str] = None) -> str:
    suffix = uuid.uuid4().hex[:12]
    return f"{category}-{suffix}" if category else suffix


def _fail(error: EntryError, message: Optional[str] = None) -> EntryResult:
    return EntryResult(error=error, message=message or ERROR_MESSAGES[error])


def build_entry(
    activity: Optional[CatalogActivity],
    option: Optional[CatalogActivityOption],
    quantity: Any,
    period: Period,
    settings: PeriodSettings,
    *,
    category: Optional[str] = None,
    entry_id: Optional[str] = None,
) -> EntryResult:
    """
    Validate and build a WorkloadEntry.

    Checks run in order and the first failure is returned:
    1. activity and option are both selected
    2. quantity is finite and > 0, and quantity x rate does not overflow
    3. quantity matches the option's granularity (whole or half steps)
    """
    if activity is None or option is None:
        return _fail(EntryError.MISSING_SELECTION)

    value = _to_float(quantity)
    if not math.isfinite(value) or value <= 0 or not math.isfinite(value * option.jam_per_unit):
        return _fail(EntryError.NON_POSITIVE_QUANTITY)

    if not is_valid_step(value, option.granularity):
        message = HALF_STEP_MESSAGE if option.granularity == Granularity.HALF else None
        return _fail(EntryError.INVALID_GRANULARITY, message)

    entry = WorkloadEntry(
        id=entry_id or new_entry_id(category),
        activity_name=activity.activity_name,
        option_name=option.option_name,
        option_id=option.id,
        base_quantity=value,
        period=period,
        jam_per_unit=option.jam_per_unit,
        computed_weekly_hours=compute_weekly_hours(value, option.jam_per_unit, period, settings),
        units=f"{format_quantity(value)} {format_unit_label(option.unit_label)}",
    )
    return EntryResult(entry=entry)


def build_demo_entries(
    index: Mapping[str, List[CatalogActivity]],
    period: Period,
    settings: PeriodSettings,
) -> Dict[str, WorkloadEntry]:
    """
    One sample entry per category, taken from the first activity and option
    of its sub-category. Hour units get 2 hours, everything else 1 unit.
    Categories with an empty sub-category are skipped.
    """
    demo: Dict[str, WorkloadEntry] = {}
    for category, sub_category_id in SUBCATEGORY_BY_CATEGORY.items():
        activities = index.get(sub_category_id) or []
        if not activities or not activities[0].options:
            continue
        activity = activities[0]
        option = activity.options[0]
        quantity = 2 if option.unit_code == "hour" else 1
        result = build_entry(activity, option, quantity, period, settings, category=category)
        if result.entry is not None:
            demo[category] = result.entry
    return demo
