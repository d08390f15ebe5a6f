"""
Flat report rows for CSV export.

Each row is already resolved against the current catalog; encoding is left
to data_io.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Dict, List, Mapping, Optional

from .aggregate import resolve_catalog_reference
from .entries import format_quantity, format_unit_label
from .schema import MISSING_ITEM_LABEL, CatalogActivity, CatalogActivityOption, WorkloadEntry
from .state import WorkloadState

REPORT_FIELDS: List[str] = [
    "laluan",
    "gredJawatan",
    "modTempoh",
    "dijanaPada",
    "kategori",
    "aktiviti",
    "kategoriAktiviti",
    "kuantiti",
    "unit",
    "kadarJamPerUnit",
    "tempoh",
    "jamMinggu",
    "rujukanDokumen",
    "rujukanSeksyen",
    "rujukanMukaSurat",
]


def entry_unit_label(entry: WorkloadEntry, option: Optional[CatalogActivityOption]) -> str:
    """Unit label from the catalog, else recovered from the stored units text."""
    if option is not None and option.unit_label:
        return format_unit_label(option.unit_label)
    quantity_text = format_quantity(entry.base_quantity)
    if entry.units.startswith(quantity_text):
        return entry.units[len(quantity_text):].strip()
    parts = entry.units.split(" ")
    return " ".join(parts[1:]) if len(parts) > 1 else entry.units


def build_report_rows(
    state: WorkloadState,
    index: Mapping[str, List[CatalogActivity]],
    generated_at: Optional[datetime] = None,
) -> List[Dict[str, object]]:
    generated_at = generated_at or datetime.now(timezone.utc)
    rows: List[Dict[str, object]] = []
    for category, entries in state.entries_by_category.items():
        for entry in entries:
            resolved = resolve_catalog_reference(entry, index, category)
            option = resolved.option
            reference = option.references[0] if option is not None and option.references else None
            rows.append(
                {
                    "laluan": state.pathway,
                    "gredJawatan": state.grade,
                    "modTempoh": state.period.value,
                    "dijanaPada": generated_at.isoformat(),
                    "kategori": category,
                    "aktiviti": MISSING_ITEM_LABEL if resolved.is_missing else resolved.activity_name,
                    "kategoriAktiviti": "" if resolved.is_missing else resolved.option_name,
                    "kuantiti": format_quantity(entry.base_quantity),
                    "unit": entry_unit_label(entry, option),
                    "kadarJamPerUnit": "" if entry.jam_per_unit is None else entry.jam_per_unit,
                    "tempoh": entry.period.value,
                    "jamMinggu": f"{entry.computed_weekly_hours:.1f}",
                    "rujukanDokumen": reference.doc if reference else "",
                    "rujukanSeksyen": reference.section if reference else "",
                    "rujukanMukaSurat": (reference.page or "") if reference else "",
                }
            )
    return rows


def sanitize_file_part(value: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9\-_]", "", re.sub(r"\s+", "-", value.strip()))
    return cleaned or "data"


def report_filename(pathway: str, grade: str, on: Optional[date] = None) -> str:
    on = on or date.today()
    return f"bta-ums_{sanitize_file_part(pathway)}_{sanitize_file_part(grade)}_{on.isoformat()}.csv"


def catalog_filename(on: Optional[date] = None) -> str:
    on = on or date.today()
    return f"bta-katalog_{on.isoformat()}.json"
