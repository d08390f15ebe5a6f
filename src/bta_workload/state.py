"""
Session state for the calculator: selected pathway/grade/period, period
settings and the entries of each category.

WorkloadState is immutable; every operation returns a new state so callers
can keep the previous one around.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .aggregate import resolve_catalog_reference
from .period import compute_weekly_hours, normalize_period_settings, parse_period
from .schema import (
    CATEGORIES,
    DEFAULT_PERIOD_SETTINGS,
    PATHWAYS,
    CatalogActivity,
    Period,
    PeriodSettings,
    WorkloadEntry,
)
from .targets import MinimumTargetTable
from .text import normalize_title_case, split_activity_label

EntriesByCategory = Dict[str, List[WorkloadEntry]]


def empty_entries() -> EntriesByCategory:
    return {category: [] for category in CATEGORIES}


@dataclass(frozen=True)
class WorkloadState:
    pathway: str = PATHWAYS[0]
    grade: str = ""
    period: Period = Period.WEEKLY
    period_settings: PeriodSettings = DEFAULT_PERIOD_SETTINGS
    entries_by_category: EntriesByCategory = field(default_factory=empty_entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pathway": self.pathway,
            "grade": self.grade,
            "period": self.period.value,
            "periodSettings": self.period_settings.to_dict(),
            "entriesByTab": {
                category: [entry.to_dict() for entry in entries]
                for category, entries in self.entries_by_category.items()
            },
        }

    def entry_count(self) -> int:
        return sum(len(entries) for entries in self.entries_by_category.values())


def default_state(
    targets: MinimumTargetTable,
    settings: PeriodSettings = DEFAULT_PERIOD_SETTINGS,
) -> WorkloadState:
    grades = targets.grades(PATHWAYS[0])
    return WorkloadState(grade=grades[0] if grades else "", period_settings=settings)


def _copy_entries(entries_by_category: Mapping[str, Sequence[WorkloadEntry]]) -> EntriesByCategory:
    out = empty_entries()
    for category, entries in entries_by_category.items():
        out[category] = list(entries)
    return out


def add_entry(state: WorkloadState, category: str, entry: WorkloadEntry) -> WorkloadState:
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    entries = _copy_entries(state.entries_by_category)
    entries[category].append(entry)
    return replace(state, entries_by_category=entries)


def remove_entry(state: WorkloadState, category: str, entry_id: str) -> WorkloadState:
    entries = _copy_entries(state.entries_by_category)
    entries[category] = [e for e in entries.get(category, []) if e.id != entry_id]
    return replace(state, entries_by_category=entries)


def reset_entries(state: WorkloadState) -> WorkloadState:
    return replace(state, entries_by_category=empty_entries())


def with_selection(
    state: WorkloadState,
    targets: MinimumTargetTable,
    *,
    pathway: Optional[str] = None,
    grade: Optional[str] = None,
    period: Optional[Any] = None,
) -> WorkloadState:
    """Change pathway/grade/period, falling back to valid values."""
    next_pathway = pathway if pathway in PATHWAYS else state.pathway
    grades = targets.grades(next_pathway)
    wanted_grade = grade if grade is not None else state.grade
    next_grade = wanted_grade if wanted_grade in grades else (grades[0] if grades else "")
    next_period = parse_period(period, state.period) if period is not None else state.period
    return replace(state, pathway=next_pathway, grade=next_grade, period=next_period)


def with_period_settings(state: WorkloadState, settings: Any) -> WorkloadState:
    return replace(state, period_settings=normalize_period_settings(settings))


def recompute_entries(
    state: WorkloadState,
    index: Optional[Mapping[str, List[CatalogActivity]]] = None,
) -> WorkloadState:
    """
    Re-derive cached weekly hours after the period settings changed.

    Uses each entry's own period and rate snapshot. Entries without a rate
    snapshot, and entries that no longer resolve in `index`, keep their
    cached value.
    """
    entries = empty_entries()
    for category, current in state.entries_by_category.items():
        updated: List[WorkloadEntry] = []
        for entry in current:
            missing = (
                index is not None
                and resolve_catalog_reference(entry, index, category).is_missing
            )
            if entry.jam_per_unit is None or missing:
                updated.append(entry)
                continue
            hours = compute_weekly_hours(
                entry.base_quantity, entry.jam_per_unit, entry.period, state.period_settings
            )
            updated.append(replace(entry, computed_weekly_hours=hours))
        entries[category] = updated
    return replace(state, entries_by_category=entries)


# --- Loading stored blobs --------------------------------------------------


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _number(value: Any) -> Optional[float]:
    """parseFloat-style: leading number of a string, or a finite number."""
    if isinstance(value, str):
        match = re.match(r"\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?", value)
        return float(match.group(0)) if match else None
    return _finite(value)


def _stored_entry(raw: Mapping[str, Any], category: str, position: int, settings: PeriodSettings) -> WorkloadEntry:
    fallback_activity, fallback_option = split_activity_label(raw["activity"])
    activity_name = raw.get("activityName")
    option_name = raw.get("optionName")
    activity_name = normalize_title_case(
        activity_name if isinstance(activity_name, str) else fallback_activity
    )
    option_name = normalize_title_case(
        option_name if isinstance(option_name, str) else fallback_option
    )

    units = raw.get("units") if isinstance(raw.get("units"), str) else "-"
    base_quantity = _finite(raw.get("baseQuantity"))
    if base_quantity is None:
        base_quantity = _number(units) or 0.0

    period = parse_period(raw.get("period"))
    jam_per_unit = _finite(raw.get("jamPerUnit"))

    weekly = _finite(raw.get("computedWeeklyHours"))
    if weekly is None:
        weekly = _number(raw.get("hours"))
    if weekly is None:
        weekly = compute_weekly_hours(base_quantity, jam_per_unit, period, settings)

    option_id = raw.get("optionId")
    return WorkloadEntry(
        id=str(raw.get("id") or f"{category}-{position}"),
        activity_name=activity_name,
        option_name=option_name,
        option_id=option_id if isinstance(option_id, str) else None,
        base_quantity=base_quantity,
        period=period,
        jam_per_unit=jam_per_unit,
        computed_weekly_hours=weekly,
        units=units,
    )


def normalize_stored_state(
    raw: Any,
    targets: MinimumTargetTable,
    settings_defaults: PeriodSettings = DEFAULT_PERIOD_SETTINGS,
) -> Optional[WorkloadState]:
    """
    Turn a parsed stored blob back into a WorkloadState.

    Unknown pathway/period values fall back to the first valid option, the
    grade to the pathway's first grade, and period settings to defaults.
    Entries without an activity label are dropped; entries from older
    shapes get names split from the combined label and weekly hours
    re-derived when missing. Returns None when nothing is stored.
    """
    if not isinstance(raw, Mapping):
        return None

    pathway = raw.get("pathway") if raw.get("pathway") in PATHWAYS else PATHWAYS[0]
    grades = targets.grades(pathway)
    grade = raw.get("grade") if raw.get("grade") in grades else (grades[0] if grades else "")
    period = parse_period(raw.get("period"))
    settings = normalize_period_settings(raw.get("periodSettings"), settings_defaults)

    stored = raw.get("entriesByTab")
    stored = stored if isinstance(stored, Mapping) else {}

    entries = empty_entries()
    for category in CATEGORIES:
        items = stored.get(category)
        if not isinstance(items, list):
            continue
        entries[category] = [
            _stored_entry(item, category, position, settings)
            for position, item in enumerate(items)
            if isinstance(item, Mapping) and isinstance(item.get("activity"), str)
        ]

    return WorkloadState(
        pathway=pathway,
        grade=grade,
        period=period,
        period_settings=settings,
        entries_by_category=entries,
    )
