"""
FastAPI app for the BTA workload calculator.

Endpoints:
- POST   /weekly_hours
- GET    /targets/{pathway}/{grade}
- GET    /catalog, GET /catalog/search, GET /catalog/export
- POST   /catalog/import, POST /catalog/items, DELETE /catalog/items/{item_id}
- POST   /catalog/restore
- GET    /state, PUT /selection
- POST   /entries, DELETE /entries/{category}/{entry_id}
- GET    /summary

State and catalog overrides are stored through bta_workload.data_io
(local JSON files or Azure Blob, see bta_workload.config).
"""

from __future__ import annotations

import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import Depends, FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from bta_workload.aggregate import TRAFFIC_LABELS, build_summary, traffic_key
from bta_workload.catalog import (
    auto_option,
    catalog_rows,
    filter_catalog_rows,
    find_activity,
    find_option,
    unit_labels,
)
from bta_workload.catalog_admin import (
    CatalogItemForm,
    delete_catalog_item,
    export_catalog,
    parse_catalog_document,
    upsert_catalog_item,
)
from bta_workload.config import Config, get_config
from bta_workload.data_io import clear_catalog_override, save_catalog_override
from bta_workload.entries import build_entry
from bta_workload.logger import setup_logger
from bta_workload.period import compute_weekly_hours, normalize_period_settings, parse_period
from bta_workload.schema import CATEGORIES, SUBCATEGORY_BY_CATEGORY, CatalogError, CatalogResult
from bta_workload.state import (
    add_entry,
    recompute_entries,
    remove_entry,
    with_period_settings,
    with_selection,
)
from bta_workload.targets import MinimumTargetTable
from bta_workload.workspace import active_catalog, load_state, save_state

PeriodLabel = Literal["Mingguan", "Semester", "Tahunan"]

setup_logger(get_config().log_level)

app = FastAPI(title="BTA Workload API")

_TARGETS = MinimumTargetTable.load_default()


# --- Dependencies ------------------------------------------------------------


def get_settings() -> Config:
    return get_config()


def get_targets() -> MinimumTargetTable:
    return _TARGETS


def _category_or_404(value: str) -> str:
    if value not in CATEGORIES:
        raise HTTPException(status_code=404, detail=f"Unknown category: {value}")
    return value


def _raise_catalog_error(result: CatalogResult) -> None:
    status_code = 404 if result.error == CatalogError.ITEM_NOT_FOUND else 400
    raise HTTPException(
        status_code=status_code,
        detail={"error": result.error.value if result.error else None, "message": result.message},
    )


# --- Request / Response schemas ----------------------------------------------


class WeeklyHoursPayload(BaseModel):
    """
    Live preview of one conversion; nothing is stored.

    Missing quantity or rate yields 0.
    """

    quantity: Optional[float] = None
    jamPerUnit: Optional[float] = None
    period: PeriodLabel = "Mingguan"
    semesterWeeks: Optional[int] = None
    yearWeeks: Optional[int] = None


class WeeklyHoursResponse(BaseModel):
    weeklyHours: float
    periodSettings: Dict[str, int]


class SelectionPayload(BaseModel):
    pathway: Optional[str] = None
    grade: Optional[str] = None
    period: Optional[PeriodLabel] = None
    semesterWeeks: Optional[int] = None
    yearWeeks: Optional[int] = None


class EntryPayload(BaseModel):
    """
    Select an option by id, or by activity/option names within the
    category. A single-option activity needs no option name.
    """

    category: str
    optionId: Optional[str] = None
    activityName: Optional[str] = None
    optionName: Optional[str] = None
    quantity: Union[float, str]


class EntryResponse(BaseModel):
    status: str
    entry: Dict[str, Any]


class CatalogItemPayload(BaseModel):
    subCategoryId: str
    activityName: str
    optionName: str
    unitCode: str = "hour"
    unitLabel: str = "jam"
    jamPerUnit: Union[float, str]
    tags: str = ""
    notes: str = ""
    referenceDoc: str = ""
    referenceSection: str = ""
    referencePage: str = ""
    granularity: Optional[Literal["whole", "half"]] = None
    editingId: Optional[str] = None


class CatalogImportPayload(BaseModel):
    document: Any = Field(..., description="Catalog document {meta, items}.")


# --- Endpoints ---------------------------------------------------------------


@app.post("/weekly_hours", response_model=WeeklyHoursResponse)
def weekly_hours(payload: WeeklyHoursPayload, config: Config = Depends(get_settings)) -> WeeklyHoursResponse:
    """
    Body example:
    {"quantity": 28, "jamPerUnit": 1, "period": "Semester", "semesterWeeks": 14}
    """
    settings = normalize_period_settings(
        {"semesterWeeks": payload.semesterWeeks, "yearWeeks": payload.yearWeeks},
        config.period_settings,
    )
    hours = compute_weekly_hours(
        payload.quantity, payload.jamPerUnit, parse_period(payload.period), settings
    )
    return WeeklyHoursResponse(weeklyHours=hours, periodSettings=settings.to_dict())


@app.get("/targets/{pathway}/{grade}")
def targets_for(pathway: str, grade: str, targets: MinimumTargetTable = Depends(get_targets)) -> Dict[str, Any]:
    """Unknown pathway/grade combinations return all-zero targets."""
    return {
        "pathway": pathway,
        "grade": grade,
        "grades": targets.grades(pathway),
        "targets": [asdict(t) for t in targets.targets_by_category(pathway, grade)],
        "totalTargetHours": targets.total_target_hours(pathway, grade),
    }


@app.get("/catalog")
def get_catalog(config: Config = Depends(get_settings)) -> Dict[str, Any]:
    view = active_catalog(config)
    return {
        "meta": view.meta,
        "isOverride": view.is_override,
        "activitiesBySubCategory": {
            sub: [asdict(activity) for activity in activities]
            for sub, activities in view.index.items()
        },
    }


@app.get("/catalog/search")
def search_catalog(
    category: str,
    q: str = "",
    unit: str = "",
    config: Config = Depends(get_settings),
) -> Dict[str, Any]:
    category = _category_or_404(category)
    rows = catalog_rows(active_catalog(config).items, SUBCATEGORY_BY_CATEGORY[category])
    return {
        "units": unit_labels(rows),
        "items": [asdict(item) for item in filter_catalog_rows(rows, q, unit)],
    }


@app.get("/catalog/export")
def get_catalog_export(config: Config = Depends(get_settings)) -> Dict[str, Any]:
    return export_catalog(active_catalog(config).document, config.app_version)


@app.post("/catalog/import")
def import_catalog(payload: CatalogImportPayload, config: Config = Depends(get_settings)) -> Dict[str, Any]:
    """Replace the active catalog; a malformed document changes nothing."""
    result = parse_catalog_document(payload.document)
    if result.catalog is None:
        _raise_catalog_error(result)
    save_catalog_override(result.catalog, config)
    logger.info("Catalog imported with {} items", len(result.catalog["items"]))
    return {"status": "ok", "items": len(result.catalog["items"])}


@app.post("/catalog/items")
def save_catalog_item(payload: CatalogItemPayload, config: Config = Depends(get_settings)) -> Dict[str, Any]:
    form = CatalogItemForm(
        sub_category_id=payload.subCategoryId,
        activity_name=payload.activityName,
        option_name=payload.optionName,
        unit_code=payload.unitCode,
        unit_label=payload.unitLabel,
        jam_per_unit=payload.jamPerUnit,
        tags=payload.tags,
        notes=payload.notes,
        reference_doc=payload.referenceDoc,
        reference_section=payload.referenceSection,
        reference_page=payload.referencePage,
        granularity=payload.granularity,
    )
    result = upsert_catalog_item(active_catalog(config).document, form, payload.editingId)
    if result.catalog is None:
        _raise_catalog_error(result)
    save_catalog_override(result.catalog, config)
    return {"status": "ok", "items": len(result.catalog["items"])}


@app.delete("/catalog/items/{item_id}")
def remove_catalog_item(item_id: str, config: Config = Depends(get_settings)) -> Dict[str, Any]:
    result = delete_catalog_item(active_catalog(config).document, item_id)
    if result.catalog is None:
        _raise_catalog_error(result)
    save_catalog_override(result.catalog, config)
    return {"status": "ok", "items": len(result.catalog["items"])}


@app.post("/catalog/restore")
def restore_catalog(config: Config = Depends(get_settings)) -> Dict[str, str]:
    clear_catalog_override(config)
    return {"status": "ok"}


@app.get("/state")
def get_state(
    config: Config = Depends(get_settings),
    targets: MinimumTargetTable = Depends(get_targets),
) -> Dict[str, Any]:
    return load_state(targets, config).to_dict()


@app.put("/selection")
def put_selection(
    payload: SelectionPayload,
    config: Config = Depends(get_settings),
    targets: MinimumTargetTable = Depends(get_targets),
) -> Dict[str, Any]:
    state = load_state(targets, config)
    state = with_selection(
        state, targets, pathway=payload.pathway, grade=payload.grade, period=payload.period
    )
    if payload.semesterWeeks is not None or payload.yearWeeks is not None:
        settings = {
            "semesterWeeks": payload.semesterWeeks or state.period_settings.semester_weeks,
            "yearWeeks": payload.yearWeeks or state.period_settings.year_weeks,
        }
        state = recompute_entries(with_period_settings(state, settings), active_catalog(config).index)
    save_state(state, config)
    return state.to_dict()


@app.post("/entries", response_model=EntryResponse)
def create_entry(
    payload: EntryPayload,
    config: Config = Depends(get_settings),
    targets: MinimumTargetTable = Depends(get_targets),
) -> EntryResponse:
    """
    Body example:
    {"category": "Pengajaran", "activityName": "Kuliah",
     "optionName": "Prasiswazah", "quantity": 3}
    """
    category = _category_or_404(payload.category)
    state = load_state(targets, config)
    index = active_catalog(config).index
    sub_category_id = SUBCATEGORY_BY_CATEGORY[category]

    activity, option = None, None
    if payload.optionId:
        for candidate in index.get(sub_category_id, []):
            option = next((o for o in candidate.options if o.id == payload.optionId), None)
            if option is not None:
                activity = candidate
                break
    elif payload.activityName:
        activity = find_activity(index, sub_category_id, payload.activityName)
        option = find_option(activity, payload.optionName) if payload.optionName else auto_option(activity)

    result = build_entry(activity, option, payload.quantity, state.period, state.period_settings, category=category)
    if result.entry is None:
        raise HTTPException(
            status_code=400,
            detail={"error": result.error.value, "message": result.message},
        )

    save_state(add_entry(state, category, result.entry), config)
    return EntryResponse(status="ok", entry=result.entry.to_dict())


@app.delete("/entries/{category}/{entry_id}")
def delete_entry(
    category: str,
    entry_id: str,
    config: Config = Depends(get_settings),
    targets: MinimumTargetTable = Depends(get_targets),
) -> Dict[str, str]:
    category = _category_or_404(category)
    state = load_state(targets, config)
    updated = remove_entry(state, category, entry_id)
    if updated.entry_count() == state.entry_count():
        raise HTTPException(status_code=404, detail=f"Entry not found: {entry_id}")
    save_state(updated, config)
    return {"status": "ok"}


@app.get("/summary")
def get_summary(
    config: Config = Depends(get_settings),
    targets: MinimumTargetTable = Depends(get_targets),
) -> Dict[str, Any]:
    state = load_state(targets, config)
    summary = build_summary(state.entries_by_category, targets, state.pathway, state.grade)
    return {
        "pathway": state.pathway,
        "grade": state.grade,
        "period": state.period.value,
        **asdict(summary),
        "overallTraffic": TRAFFIC_LABELS[traffic_key(summary.overall_percent)],
    }


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
