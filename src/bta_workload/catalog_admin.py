"""
Catalog import/export and admin editing.

Every operation takes a catalog document ({meta, items}) and returns a new
one inside a CatalogResult; the input document is never modified, so a
rejected import or edit leaves the active catalog as it was.
"""

from __future__ import annotations

import copy
import json
import math
import re
import secrets
import string
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .catalog import next_sort_order, normalize_catalog
from .schema import SUBCATEGORY_BY_CATEGORY, CatalogError, CatalogResult

INVALID_IMPORT_MESSAGE = "Fail tidak sah. Pastikan ada struktur items."


# --- Boundary schema ---------------------------------------------------------


class NamedPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: str
    nameMs: str


class UnitPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: str
    labelMs: str
    granularity: Optional[Literal["whole", "half"]] = None


class ReferencePart(BaseModel):
    doc: str
    section: str
    page: Optional[Union[str, int]] = None


class ConstraintsPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    notesMs: Optional[str] = None


class CatalogRecordModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    status: Literal["active", "deprecated"] = "active"
    sortOrder: Optional[int] = None
    subCategoryId: str
    activity: NamedPart
    option: NamedPart
    unit: UnitPart
    jamPerUnit: float = Field(gt=0, allow_inf_nan=False)
    constraints: Optional[ConstraintsPart] = None
    references: List[ReferencePart] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class CatalogDocumentModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    meta: Optional[Dict[str, Any]] = None
    items: List[CatalogRecordModel]


def _describe(error: ValidationError) -> List[str]:
    return [
        "/" + "/".join(str(part) for part in err["loc"]) + f" {err['msg']}"
        for err in error.errors()
    ]


def _malformed(message: str) -> CatalogResult:
    return CatalogResult(error=CatalogError.MALFORMED_IMPORT, message=message)


# --- Import / export -------------------------------------------------------


def parse_catalog_document(payload: Union[str, bytes, Mapping[str, Any], Any]) -> CatalogResult:
    """
    Validate an imported catalog (JSON text or decoded value).

    Rejects wholesale with MalformedImport when there is no `items` list or
    any record fails the schema.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            logger.debug("Catalog import is not valid JSON: {}", exc)
            return _malformed(INVALID_IMPORT_MESSAGE)

    if not isinstance(payload, Mapping) or not isinstance(payload.get("items"), list):
        return _malformed(INVALID_IMPORT_MESSAGE)

    try:
        CatalogDocumentModel.model_validate(payload)
    except ValidationError as exc:
        problems = _describe(exc)
        logger.debug("Catalog import rejected: {}", problems)
        return _malformed(f"{INVALID_IMPORT_MESSAGE} ({problems[0]})")

    return CatalogResult(catalog=copy.deepcopy(dict(payload)))


def export_catalog(
    catalog: Mapping[str, Any],
    app_version: str,
    exported_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Copy of the catalog with export metadata stamped into `meta`."""
    exported_at = exported_at or datetime.now(timezone.utc)
    payload = copy.deepcopy(dict(catalog))
    meta = dict(payload.get("meta") or {})
    meta.update(
        {
            "exportedAt": exported_at.isoformat(),
            "appVersion": app_version,
            "guidelineVersion": meta.get("version"),
        }
    )
    payload["meta"] = meta
    return payload


def validate_catalog(catalog: Any) -> List[str]:
    """
    Maintenance check for a catalog file.

    Returns human-readable problems: schema errors, duplicate ids, and
    required sub-categories that have no items. Empty list means valid.
    """
    if not isinstance(catalog, Mapping) or not isinstance(catalog.get("items"), list):
        return ["/ items must be a list"]

    try:
        CatalogDocumentModel.model_validate(catalog)
    except ValidationError as exc:
        return _describe(exc)

    items = catalog["items"]
    problems: List[str] = []

    counts = Counter(item["id"] for item in items)
    problems.extend(f"duplicate item id: {item_id}" for item_id, n in counts.items() if n > 1)

    present = {item["subCategoryId"] for item in items}
    problems.extend(
        f"missing subCategoryId coverage: {sub}"
        for sub in SUBCATEGORY_BY_CATEGORY.values()
        if sub not in present
    )
    return problems


# --- Admin editing -----------------------------------------------------------


@dataclass
class CatalogItemForm:
    """Values typed into the admin add/edit form."""

    sub_category_id: str
    activity_name: str
    option_name: str
    unit_code: str = "hour"
    unit_label: str = "jam"
    jam_per_unit: Union[str, float] = ""
    tags: str = ""
    notes: str = ""
    reference_doc: str = ""
    reference_section: str = ""
    reference_page: str = ""
    granularity: Optional[str] = None


def code_from_label(value: str) -> str:
    return re.sub(r"^_+|_+$", "", re.sub(r"[^A-Z0-9]+", "_", value.strip().upper()))


def create_admin_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"BTA_ADMIN_{millis}_{suffix}"


def _parse_rate(value: Union[str, float]) -> Optional[float]:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def _record_fields(form: CatalogItemForm, rate: float) -> Dict[str, Any]:
    activity_name = form.activity_name.strip()
    option_name = form.option_name.strip()
    unit_label = form.unit_label.strip()
    unit: Dict[str, Any] = {
        "code": form.unit_code.strip() or code_from_label(unit_label),
        "labelMs": unit_label,
    }
    if form.granularity:
        unit["granularity"] = form.granularity

    references: List[Dict[str, str]] = []
    if form.reference_doc.strip() or form.reference_section.strip():
        reference = {
            "doc": form.reference_doc.strip() or "-",
            "section": form.reference_section.strip() or "-",
        }
        if form.reference_page.strip():
            reference["page"] = form.reference_page.strip()
        references.append(reference)

    fields: Dict[str, Any] = {
        "subCategoryId": form.sub_category_id,
        "activity": {"code": code_from_label(activity_name) or create_admin_id(), "nameMs": activity_name},
        "option": {"code": code_from_label(option_name) or create_admin_id(), "nameMs": option_name},
        "unit": unit,
        "jamPerUnit": rate,
        "references": references,
        "tags": [tag.strip() for tag in form.tags.split(",") if tag.strip()],
    }
    notes = form.notes.strip()
    fields["constraints"] = {"notesMs": notes} if notes else None
    return fields


def upsert_catalog_item(
    catalog: Mapping[str, Any],
    form: CatalogItemForm,
    editing_id: Optional[str] = None,
) -> CatalogResult:
    """
    Add a record, or replace the record `editing_id` as a whole.

    An edited record keeps its sort order unless it moved to another
    sub-category; new records get a fresh id and the next free position.
    """
    if not form.activity_name.strip() or not form.option_name.strip():
        return CatalogResult(
            error=CatalogError.MISSING_NAME,
            message="Aktiviti dan kategori aktiviti wajib diisi.",
        )
    rate = _parse_rate(form.jam_per_unit)
    if rate is None:
        return CatalogResult(
            error=CatalogError.NON_POSITIVE_RATE,
            message="Kadar mesti lebih daripada 0.",
        )

    next_catalog = copy.deepcopy(dict(catalog))
    items: List[Dict[str, Any]] = list(next_catalog.get("items") or [])
    active_items = normalize_catalog(items)
    fields = _record_fields(form, rate)

    if editing_id is None:
        items.append(
            {
                "id": create_admin_id(),
                "status": "active",
                "sortOrder": next_sort_order(form.sub_category_id, active_items),
                **fields,
            }
        )
    else:
        position = next((i for i, item in enumerate(items) if item.get("id") == editing_id), None)
        if position is None:
            return CatalogResult(
                error=CatalogError.ITEM_NOT_FOUND,
                message=f"Item katalog {editing_id} tidak ditemui.",
            )
        existing = items[position]
        if existing.get("subCategoryId") != form.sub_category_id or existing.get("sortOrder") is None:
            sort_order = next_sort_order(form.sub_category_id, active_items)
        else:
            sort_order = existing["sortOrder"]
        items[position] = {**existing, **fields, "sortOrder": sort_order}

    next_catalog["items"] = items
    logger.debug("Catalog item {} ({} items)", editing_id or "added", len(items))
    return CatalogResult(catalog=next_catalog)


def delete_catalog_item(catalog: Mapping[str, Any], item_id: str) -> CatalogResult:
    items = list(catalog.get("items") or [])
    remaining = [item for item in items if item.get("id") != item_id]
    if len(remaining) == len(items):
        return CatalogResult(
            error=CatalogError.ITEM_NOT_FOUND,
            message=f"Item katalog {item_id} tidak ditemui.",
        )
    next_catalog = copy.deepcopy(dict(catalog))
    next_catalog["items"] = copy.deepcopy(remaining)
    return CatalogResult(catalog=next_catalog)


def deprecate_catalog_item(catalog: Mapping[str, Any], item_id: str) -> CatalogResult:
    """Mark a record deprecated; it disappears from normalized output."""
    next_catalog = copy.deepcopy(dict(catalog))
    items = next_catalog.get("items") or []
    for position, item in enumerate(items):
        if item.get("id") == item_id:
            items[position] = {**item, "status": "deprecated"}
            return CatalogResult(catalog=next_catalog)
    return CatalogResult(
        error=CatalogError.ITEM_NOT_FOUND,
        message=f"Item katalog {item_id} tidak ditemui.",
    )
