"""
Catalog normalization and indexing.

Responsibilities:
- Flatten versioned catalog records into CatalogItem rows, dropping
  deprecated records.
- Group items into sub-category -> Activity -> Option hierarchies with a
  deterministic display order.
- Allocate sort positions for new or moved items.
- Small lookup/search helpers used by entry forms and the admin table.

All functions return new structures and never mutate their inputs.
"""

from __future__ import annotations

import json
from importlib import resources
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .schema import (
    SORT_BASE_BY_SUBCATEGORY,
    CatalogActivity,
    CatalogActivityOption,
    CatalogItem,
    Granularity,
    Reference,
)

SORT_STEP = 10

CatalogDocument = Mapping[str, Any]
RawCatalog = Union[CatalogDocument, Sequence[Mapping[str, Any]]]


def load_base_catalog() -> Dict[str, Any]:
    """Return a fresh copy of the catalog document shipped with the package."""
    text = (
        resources.files("bta_workload")
        .joinpath("data", "bta.catalog.v1.json")
        .read_text(encoding="utf-8")
    )
    return json.loads(text)


# --- Normalization -----------------------------------------------------------


def resolve_granularity(unit: Mapping[str, Any]) -> Granularity:
    """
    Quantity step for a unit.

    An explicit `granularity` on the record wins; otherwise hour-based units
    accept half steps and every other unit code requires whole numbers.
    """
    declared = unit.get("granularity")
    if declared:
        try:
            return Granularity(declared)
        except ValueError:
            pass
    return Granularity.HALF if unit.get("code") == "hour" else Granularity.WHOLE


def _references(raw: Optional[Iterable[Mapping[str, Any]]]) -> List[Reference]:
    out: List[Reference] = []
    for ref in raw or []:
        page = ref.get("page")
        out.append(
            Reference(
                doc=str(ref.get("doc", "")),
                section=str(ref.get("section", "")),
                page=str(page) if page not in (None, "") else None,
            )
        )
    return out


def _records(raw_catalog: RawCatalog) -> Sequence[Mapping[str, Any]]:
    if isinstance(raw_catalog, Mapping):
        return raw_catalog.get("items") or []
    return raw_catalog


def normalize_record(record: Mapping[str, Any]) -> CatalogItem:
    activity = record["activity"]
    option = record["option"]
    unit = record["unit"]
    constraints = record.get("constraints") or {}
    return CatalogItem(
        id=record["id"],
        sub_category_id=record["subCategoryId"],
        activity_code=activity["code"],
        activity_name=activity["nameMs"],
        option_code=option["code"],
        option_name=option["nameMs"],
        unit_code=unit["code"],
        unit_label=unit["labelMs"],
        jam_per_unit=float(record["jamPerUnit"]),
        sort_order=int(record.get("sortOrder") or 0),
        granularity=resolve_granularity(unit),
        constraints_notes=constraints.get("notesMs"),
        references=_references(record.get("references")),
        tags=list(record.get("tags") or []),
    )


def normalize_catalog(raw_catalog: RawCatalog) -> List[CatalogItem]:
    """
    Flatten active records of a catalog document (or a bare list of records).

    Records must already be well-formed; schema checks happen at import time.
    """
    return [
        normalize_record(record)
        for record in _records(raw_catalog)
        if record.get("status") != "deprecated"
    ]


# --- Indexing ----------------------------------------------------------------


def _name_key(name: str) -> tuple:
    return (name.casefold(), name)


def build_index(items: Iterable[CatalogItem]) -> Dict[str, List[CatalogActivity]]:
    """
    Group items by sub-category, then by activity code.

    The first item seen for an activity seeds its name and sort order; every
    further option pulls the activity's sort order down to the lowest option.
    Activities are ordered by (sort_order, name) and options likewise, so the
    result does not depend on the order of `items`.
    """
    # Visit items in a canonical order so "first seen" is input-independent.
    ordered = sorted(
        items,
        key=lambda i: (i.sort_order, _name_key(i.activity_name), _name_key(i.option_name), i.id),
    )

    index: Dict[str, List[CatalogActivity]] = {}
    by_code: Dict[tuple, CatalogActivity] = {}
    seen_ids = set()

    for item in ordered:
        if item.id in seen_ids:
            continue
        seen_ids.add(item.id)

        key = (item.sub_category_id, item.activity_code)
        activity = by_code.get(key)
        if activity is None:
            activity = CatalogActivity(
                activity_code=item.activity_code,
                activity_name=item.activity_name,
                sort_order=item.sort_order,
            )
            by_code[key] = activity
            index.setdefault(item.sub_category_id, []).append(activity)

        activity.options.append(CatalogActivityOption.from_item(item))
        activity.sort_order = min(activity.sort_order, item.sort_order)

    for activities in index.values():
        activities.sort(key=lambda a: (a.sort_order, _name_key(a.activity_name), a.activity_code))
        for activity in activities:
            activity.options.sort(key=lambda o: (o.sort_order, _name_key(o.option_name), o.id))

    return index


# --- Sort order allocation -------------------------------------------------


def sort_base(sub_category_id: str) -> int:
    return SORT_BASE_BY_SUBCATEGORY.get(sub_category_id, 0)


def next_sort_order(sub_category_id: str, existing_items: Iterable[CatalogItem]) -> int:
    """
    Next free sort position inside a sub-category.

    Starts from max(base, highest existing + 10) and steps by 10 past any
    position already taken, leaving gaps for later insertions.
    """
    base = sort_base(sub_category_id)
    existing = {
        item.sort_order for item in existing_items if item.sub_category_id == sub_category_id
    }
    highest = max(existing) if existing else base
    candidate = max(base, highest + SORT_STEP)
    while candidate in existing:
        candidate += SORT_STEP
    return candidate


# --- Lookup / search -------------------------------------------------------


def reference_text(references: Sequence[Reference]) -> str:
    if not references:
        return "-"
    return "; ".join(
        f"{ref.doc} {ref.section}" + (f" (ms {ref.page})" if ref.page else "")
        for ref in references
    )


def catalog_rows(items: Iterable[CatalogItem], sub_category_id: str) -> List[CatalogItem]:
    """Items of one sub-category in admin-table order."""
    rows = [item for item in items if item.sub_category_id == sub_category_id]
    rows.sort(
        key=lambda i: (i.sort_order, _name_key(i.activity_name), _name_key(i.option_name))
    )
    return rows


def filter_catalog_rows(
    rows: Iterable[CatalogItem],
    search: str = "",
    unit_label: str = "",
) -> List[CatalogItem]:
    needle = search.strip().lower()
    out: List[CatalogItem] = []
    for item in rows:
        if unit_label and item.unit_label != unit_label:
            continue
        if needle:
            haystack = (
                f"{item.activity_name} {item.option_name} {item.unit_label} "
                f"{item.jam_per_unit:g} {reference_text(item.references)}"
            ).lower()
            if needle not in haystack:
                continue
        out.append(item)
    return out


def unit_labels(rows: Iterable[CatalogItem]) -> List[str]:
    return sorted({item.unit_label for item in rows}, key=_name_key)


def find_activity(
    index: Mapping[str, List[CatalogActivity]],
    sub_category_id: str,
    name: str,
) -> Optional[CatalogActivity]:
    query = name.strip().lower()
    for activity in index.get(sub_category_id, []):
        if activity.activity_name.lower() == query:
            return activity
    return None


def find_option(activity: Optional[CatalogActivity], name: str) -> Optional[CatalogActivityOption]:
    if activity is None:
        return None
    query = name.strip().lower()
    for option in activity.options:
        if option.option_name.lower() == query:
            return option
    return None


def auto_option(activity: Optional[CatalogActivity]) -> Optional[CatalogActivityOption]:
    """The only option of a single-option activity, else None."""
    if activity is not None and len(activity.options) == 1:
        return activity.options[0]
    return None
