"""
Totals, target comparison and catalog re-resolution for workload entries.

Summation trusts each entry's cached computed_weekly_hours; conversion is
the entry builder's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .schema import (
    SUBCATEGORY_BY_CATEGORY,
    CatalogActivity,
    CatalogActivityOption,
    ResolvedReference,
    WorkloadEntry,
)
from .targets import MinimumTargetTable
from .text import split_activity_label


class TargetStatus(str, Enum):
    MET = "Cukup"
    UNMET = "Kurang"


class TrafficKey(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    DARKGREEN = "darkgreen"
    BLACK = "black"


TRAFFIC_LABELS: Dict[TrafficKey, str] = {
    TrafficKey.RED: "Kurang",
    TrafficKey.YELLOW: "Hampir",
    TrafficKey.GREEN: "Cukup",
    TrafficKey.DARKGREEN: "Terlebih",
    TrafficKey.BLACK: "Overload",
}


@dataclass(frozen=True)
class WorkloadTotals:
    per_category_hours: Dict[str, float]
    total_hours: float


@dataclass(frozen=True)
class CategorySummary:
    category: str
    actual_hours: float
    min_hours: float
    percent: float
    status: TargetStatus
    traffic: TrafficKey


@dataclass(frozen=True)
class WorkloadSummary:
    categories: List[CategorySummary] = field(default_factory=list)
    total_hours: float = 0.0
    total_target_hours: float = 0.0
    overall_percent: float = 0.0
    status: TargetStatus = TargetStatus.UNMET


def _weekly_hours(entries: Iterable[WorkloadEntry]) -> np.ndarray:
    values = np.array(
        [e.computed_weekly_hours if e.computed_weekly_hours is not None else np.nan for e in entries],
        dtype=float,
    )
    return np.nan_to_num(values, nan=0.0, posinf=0.0, neginf=0.0)


def aggregate(entries_by_category: Mapping[str, Sequence[WorkloadEntry]]) -> WorkloadTotals:
    """Per-category and overall sums of cached weekly hours."""
    per_category = {
        category: float(_weekly_hours(entries).sum())
        for category, entries in entries_by_category.items()
    }
    total = float(np.sum(list(per_category.values()))) if per_category else 0.0
    return WorkloadTotals(per_category_hours=per_category, total_hours=total)


def status(actual_hours: float, min_hours: float) -> TargetStatus:
    return TargetStatus.MET if actual_hours >= min_hours else TargetStatus.UNMET


# --- Traffic light ---------------------------------------------------------


def calc_percent(achieved: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return achieved / target * 100


def traffic_key(percent: float) -> TrafficKey:
    """Overall load band."""
    if percent <= 50:
        return TrafficKey.RED
    if percent <= 99:
        return TrafficKey.YELLOW
    if percent <= 120:
        return TrafficKey.GREEN
    return TrafficKey.DARKGREEN


def section_traffic_key(percent: float) -> TrafficKey:
    """Per-category band; anything over 150% is flagged as overload."""
    if percent < 50:
        return TrafficKey.RED
    if percent < 100:
        return TrafficKey.YELLOW
    if percent <= 150:
        return TrafficKey.GREEN
    return TrafficKey.BLACK


def overall_percent_equal_weight(sections: Iterable[Mapping[str, object]]) -> float:
    """
    Mean of per-section percents, each section weighted equally.

    Sections with `enabled: False` or a non-positive target are left out.
    """
    percents = [
        calc_percent(float(s["achieved"]), float(s["target"]))
        for s in sections
        if s.get("enabled", True) is not False and float(s["target"]) > 0
    ]
    if not percents:
        return 0.0
    return float(np.mean(percents))


def build_summary(
    entries_by_category: Mapping[str, Sequence[WorkloadEntry]],
    targets: MinimumTargetTable,
    pathway: str,
    grade: str,
) -> WorkloadSummary:
    totals = aggregate(entries_by_category)
    rows: List[CategorySummary] = []
    for target in targets.targets_by_category(pathway, grade):
        actual = totals.per_category_hours.get(target.category, 0.0)
        percent = calc_percent(actual, target.min_hours)
        rows.append(
            CategorySummary(
                category=target.category,
                actual_hours=actual,
                min_hours=target.min_hours,
                percent=percent,
                status=status(actual, target.min_hours),
                traffic=section_traffic_key(percent),
            )
        )
    total_target = targets.total_target_hours(pathway, grade)
    return WorkloadSummary(
        categories=rows,
        total_hours=totals.total_hours,
        total_target_hours=total_target,
        overall_percent=overall_percent_equal_weight(
            {"achieved": r.actual_hours, "target": r.min_hours} for r in rows
        ),
        status=status(totals.total_hours, total_target),
    )


# --- Catalog re-resolution -----------------------------------------------


def _activities_for(
    index: Mapping[str, List[CatalogActivity]],
    category: Optional[str],
) -> Iterable[CatalogActivity]:
    if category is not None:
        return index.get(SUBCATEGORY_BY_CATEGORY.get(category, category), [])
    return (activity for activities in index.values() for activity in activities)


def resolve_catalog_reference(
    entry: WorkloadEntry,
    index: Mapping[str, List[CatalogActivity]],
    category: Optional[str] = None,
) -> ResolvedReference:
    """
    Find the catalog option an entry points at.

    The stored option id wins. Failing that, the stored activity and option
    names are matched (within `category` when given), which survives a
    re-import that changed ids but kept labels. When neither resolves the
    result is flagged is_missing and callers show a sentinel label.
    """
    fallback_activity, fallback_option = split_activity_label(entry.activity)
    stored_activity = entry.activity_name or fallback_activity
    stored_option = entry.option_name or fallback_option

    if entry.option_id:
        for activity in _activities_for(index, None):
            for option in activity.options:
                if option.id == entry.option_id:
                    return ResolvedReference(
                        activity_name=activity.activity_name,
                        option_name=option.option_name,
                        option=option,
                        is_missing=False,
                    )

    matched: Optional[CatalogActivityOption] = None
    for activity in _activities_for(index, category):
        if activity.activity_name != stored_activity:
            continue
        matched = next((o for o in activity.options if o.option_name == stored_option), None)
        if matched is not None:
            break

    return ResolvedReference(
        activity_name=stored_activity,
        option_name=stored_option,
        option=matched,
        is_missing=matched is None,
    )
