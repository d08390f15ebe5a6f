"""
Data schemas for the BTA workload calculator.

Defines:
- Period / PeriodSettings: reporting cadence of a raw quantity
- CatalogItem: flattened projection of one active catalog record
- CatalogActivity / CatalogActivityOption: the Activity -> Option hierarchy
- CategoryTarget: one row of the minimum-target matrix
- WorkloadEntry: a persisted user record
- Result types returned by the core instead of raising
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Period(str, Enum):
    WEEKLY = "Mingguan"
    SEMESTER = "Semester"
    YEARLY = "Tahunan"


PERIODS: List[Period] = [Period.WEEKLY, Period.SEMESTER, Period.YEARLY]

# Canonical category order; the target matrix and stored state key on these.
CATEGORIES: List[str] = [
    "Pengajaran",
    "Penyeliaan",
    "Penerbitan",
    "Penyelidikan",
    "Persidangan",
    "Pentadbiran",
    "Perkhidmatan",
]

SUBCATEGORY_BY_CATEGORY: Dict[str, str] = {
    "Pengajaran": "SUB_TEACH",
    "Penyeliaan": "SUB_SUP",
    "Penerbitan": "SUB_PUB",
    "Penyelidikan": "SUB_RES",
    "Persidangan": "SUB_CONF",
    "Pentadbiran": "SUB_ADMIN",
    "Perkhidmatan": "SUB_SVC",
}

# Hundred-blocks so items of different categories never share a position.
SORT_BASE_BY_SUBCATEGORY: Dict[str, int] = {
    "SUB_TEACH": 190,
    "SUB_SUP": 290,
    "SUB_PUB": 490,
    "SUB_RES": 590,
    "SUB_CONF": 690,
    "SUB_ADMIN": 790,
    "SUB_SVC": 890,
}

PATHWAYS: List[str] = ["Guru", "Pensyarah", "Penyelidik", "Pentadbir", "Perubatan"]

MISSING_ITEM_LABEL = "Item tidak ditemui dalam katalog"


class Granularity(str, Enum):
    """Quantity step a unit accepts."""

    WHOLE = "whole"
    HALF = "half"


@dataclass(frozen=True)
class PeriodSettings:
    semester_weeks: int = 14
    year_weeks: int = 52

    def to_dict(self) -> Dict[str, int]:
        return {"semesterWeeks": self.semester_weeks, "yearWeeks": self.year_weeks}


DEFAULT_PERIOD_SETTINGS = PeriodSettings()


@dataclass(frozen=True)
class Reference:
    doc: str
    section: str
    page: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {"doc": self.doc, "section": self.section}
        if self.page:
            out["page"] = self.page
        return out


@dataclass(frozen=True)
class CatalogItem:
    """
    One active catalog record, flattened.

    Exactly one CatalogItem exists per record id; deprecated records never
    produce one.
    """

    id: str
    sub_category_id: str
    activity_code: str
    activity_name: str
    option_code: str
    option_name: str
    unit_code: str
    unit_label: str
    jam_per_unit: float
    sort_order: int = 0
    granularity: Granularity = Granularity.WHOLE
    constraints_notes: Optional[str] = None
    references: List[Reference] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogActivityOption:
    id: str
    option_code: str
    option_name: str
    unit_code: str
    unit_label: str
    jam_per_unit: float
    sort_order: int = 0
    granularity: Granularity = Granularity.WHOLE
    constraints_notes: Optional[str] = None
    references: List[Reference] = field(default_factory=list)

    @classmethod
    def from_item(cls, item: CatalogItem) -> "CatalogActivityOption":
        return cls(
            id=item.id,
            option_code=item.option_code,
            option_name=item.option_name,
            unit_code=item.unit_code,
            unit_label=item.unit_label,
            jam_per_unit=item.jam_per_unit,
            sort_order=item.sort_order,
            granularity=item.granularity,
            constraints_notes=item.constraints_notes,
            references=list(item.references),
        )


@dataclass
class CatalogActivity:
    """
    Options sharing an activity code within one sub-category.

    sort_order is the minimum over the options, so an activity is placed at
    its earliest-defined option.
    """

    activity_code: str
    activity_name: str
    sort_order: int
    options: List[CatalogActivityOption] = field(default_factory=list)


@dataclass(frozen=True)
class CategoryTarget:
    category: str
    percent: float = 0.0
    min_hours: float = 0.0


@dataclass(frozen=True)
class WorkloadEntry:
    """
    A persisted workload record.

    Names and rate are snapshots taken at creation time; option_id is only a
    weak reference that may stop resolving after a catalog change.
    """

    id: str
    activity_name: str
    option_name: str
    base_quantity: float
    period: Period
    computed_weekly_hours: float
    option_id: Optional[str] = None
    jam_per_unit: Optional[float] = None
    units: str = "-"

    @property
    def activity(self) -> str:
        if not self.option_name:
            return self.activity_name
        return f"{self.activity_name} — {self.option_name}"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "activity": self.activity,
            "activityName": self.activity_name,
            "optionName": self.option_name,
            "units": self.units,
            "baseQuantity": self.base_quantity,
            "period": self.period.value,
            "computedWeeklyHours": self.computed_weekly_hours,
        }
        if self.option_id is not None:
            out["optionId"] = self.option_id
        if self.jam_per_unit is not None:
            out["jamPerUnit"] = self.jam_per_unit
        return out


class EntryError(str, Enum):
    MISSING_SELECTION = "MissingSelection"
    NON_POSITIVE_QUANTITY = "NonPositiveQuantity"
    INVALID_GRANULARITY = "InvalidGranularity"


class CatalogError(str, Enum):
    MALFORMED_IMPORT = "MalformedImport"
    MISSING_NAME = "MissingName"
    NON_POSITIVE_RATE = "NonPositiveRate"
    ITEM_NOT_FOUND = "ItemNotFound"


@dataclass(frozen=True)
class EntryResult:
    entry: Optional[WorkloadEntry] = None
    error: Optional[EntryError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CatalogResult:
    """Outcome of an import or admin edit; catalog is None on failure."""

    catalog: Optional[Dict[str, Any]] = None
    error: Optional[CatalogError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ResolvedReference:
    activity_name: str
    option_name: str
    option: Optional[CatalogActivityOption]
    is_missing: bool
