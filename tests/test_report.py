from datetime import date, datetime, timezone

from bta_workload.catalog import build_index, normalize_catalog
from bta_workload.catalog_admin import deprecate_catalog_item
from bta_workload.entries import build_entry
from bta_workload.report import (
    REPORT_FIELDS,
    build_report_rows,
    catalog_filename,
    report_filename,
    sanitize_file_part,
)
from bta_workload.schema import MISSING_ITEM_LABEL, Period, PeriodSettings, WorkloadEntry
from bta_workload.state import add_entry, default_state, with_selection

from conftest import activity_named, option_named

GENERATED = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _state_with_entries(targets, index):
    state = with_selection(default_state(targets), targets, pathway="Pensyarah", grade="DS51")
    lecture = activity_named(index, "SUB_TEACH", "Kuliah")
    tutorial = activity_named(index, "SUB_TEACH", "Tutorial")
    for activity, option, quantity in (
        (lecture, option_named(lecture, "Prasiswazah"), 3),
        (tutorial, tutorial.options[0], 2),
    ):
        entry = build_entry(activity, option, quantity, Period.WEEKLY, PeriodSettings()).entry
        state = add_entry(state, "Pengajaran", entry)
    return state


def test_rows_carry_selection_and_references(targets, index):
    rows = build_report_rows(_state_with_entries(targets, index), index, GENERATED)
    assert len(rows) == 2
    first = rows[0]
    assert set(first) == set(REPORT_FIELDS)
    assert first["laluan"] == "Pensyarah"
    assert first["gredJawatan"] == "DS51"
    assert first["modTempoh"] == "Mingguan"
    assert first["dijanaPada"] == "2024-05-01T09:00:00+00:00"
    assert first["kategori"] == "Pengajaran"
    assert first["aktiviti"] == "Kuliah"
    assert first["kategoriAktiviti"] == "Prasiswazah"
    assert first["kuantiti"] == "3"
    assert first["unit"] == "Jam"
    assert first["kadarJamPerUnit"] == 2.5
    assert first["jamMinggu"] == "7.5"
    assert (first["rujukanDokumen"], first["rujukanSeksyen"], first["rujukanMukaSurat"]) == (
        "GP-BTA",
        "3.1",
        "12",
    )
    assert rows[1]["rujukanMukaSurat"] == ""


def test_missing_catalog_item_uses_sentinel(targets, index, base_catalog):
    state = _state_with_entries(targets, index)
    new_index = build_index(normalize_catalog(deprecate_catalog_item(base_catalog, "BTA_TEACH_TUTORIAL").catalog))
    rows = build_report_rows(state, new_index, GENERATED)
    assert rows[1]["aktiviti"] == MISSING_ITEM_LABEL
    assert rows[1]["kategoriAktiviti"] == ""
    assert rows[1]["unit"] == "Jam"
    assert rows[1]["jamMinggu"] == "3.0"
    assert rows[1]["rujukanDokumen"] == ""


def test_legacy_entry_without_rate(targets, index):
    entry = WorkloadEntry(
        id="x",
        activity_name="Kuliah",
        option_name="Prasiswazah",
        base_quantity=2,
        period=Period.WEEKLY,
        computed_weekly_hours=4.96,
        units="2 pelajar",
    )
    state = add_entry(default_state(targets), "Pengajaran", entry)
    (row,) = build_report_rows(state, {}, GENERATED)
    assert row["aktiviti"] == MISSING_ITEM_LABEL
    assert row["unit"] == "pelajar"
    assert row["kadarJamPerUnit"] == ""
    assert row["jamMinggu"] == "5.0"


def test_file_names():
    assert sanitize_file_part(" Pensyarah Kanan ") == "Pensyarah-Kanan"
    assert sanitize_file_part("!!") == "data"
    assert report_filename("Guru", "DG41", date(2024, 5, 1)) == "bta-ums_Guru_DG41_2024-05-01.csv"
    assert catalog_filename(date(2024, 5, 1)) == "bta-katalog_2024-05-01.json"
