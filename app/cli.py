"""
CLI for the BTA workload calculator.

Usage examples:

    # Preview a conversion without storing anything
    python -m app.cli weekly-hours 28 1 --period Semester

    # Show minimum targets for a pathway/grade
    python -m app.cli targets Pensyarah DS51

    # Choose pathway/grade/period for the stored session
    python -m app.cli select --pathway Pensyarah --grade DS51 --period Semester

    # Add a workload entry from the active catalog
    python -m app.cli add Pengajaran Kuliah 3 --option Prasiswazah

    # Summary against targets, and a CSV report
    python -m app.cli summary
    python -m app.cli export-csv reports/

    # Catalog maintenance
    python -m app.cli validate-catalog catalog.json
    python -m app.cli import-catalog catalog.json
    python -m app.cli export-catalog backup.json
    python -m app.cli restore-catalog
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from bta_workload.aggregate import TRAFFIC_LABELS, build_summary, traffic_key
from bta_workload.catalog import (
    auto_option,
    catalog_rows,
    filter_catalog_rows,
    find_activity,
    find_option,
    load_base_catalog,
    reference_text,
)
from bta_workload.catalog_admin import (
    export_catalog,
    parse_catalog_document,
    validate_catalog,
)
from bta_workload.config import get_config
from bta_workload.data_io import (
    clear_catalog_override,
    read_json_file,
    save_catalog_override,
    write_json_file,
    write_report_csv,
)
from bta_workload.entries import build_demo_entries, build_entry
from bta_workload.logger import setup_logger
from bta_workload.period import compute_weekly_hours, normalize_period_settings, parse_period
from bta_workload.report import build_report_rows, catalog_filename, report_filename
from bta_workload.schema import CATEGORIES, PERIODS, SUBCATEGORY_BY_CATEGORY
from bta_workload.state import (
    add_entry,
    recompute_entries,
    remove_entry,
    reset_entries,
    with_period_settings,
    with_selection,
)
from bta_workload.targets import MinimumTargetTable
from bta_workload.workspace import active_catalog, load_state, save_state

PERIOD_CHOICES = [p.value for p in PERIODS]


def _category(value: str) -> str:
    for category in CATEGORIES:
        if category.lower() == value.strip().lower():
            return category
    raise SystemExit(f"Unknown category: {value}. Choose from: {', '.join(CATEGORIES)}")


# --- Commands ----------------------------------------------------------------


def cmd_weekly_hours(args: argparse.Namespace) -> None:
    """
    Convert a quantity and rate into weekly hours.
    """
    settings = normalize_period_settings(
        {"semesterWeeks": args.semester_weeks, "yearWeeks": args.year_weeks}
    )
    hours = compute_weekly_hours(
        args.quantity, args.rate, parse_period(args.period), settings
    )
    print(f"[weekly-hours] {args.quantity:g} x {args.rate:g} ({args.period}) = {hours:.4f} jam/minggu")


def cmd_targets(args: argparse.Namespace) -> None:
    """
    List grades of a pathway, or the per-category targets of one grade.
    """
    targets = MinimumTargetTable.load_default()
    if not args.grade:
        grades = targets.grades(args.pathway)
        if not grades:
            raise SystemExit(f"[targets] Unknown pathway: {args.pathway}")
        print(f"[targets] Grades for {args.pathway}: {', '.join(grades)}")
        return

    print(f"[targets] {args.pathway} · {args.grade}")
    for target in targets.targets_by_category(args.pathway, args.grade):
        print(f"  {target.category:<14} {target.min_hours:>5.1f} jam  {target.percent * 100:>5.1f}%")
    print(f"  {'Jumlah':<14} {targets.total_target_hours(args.pathway, args.grade):>5.1f} jam")


def cmd_catalog(args: argparse.Namespace) -> None:
    """
    Show the active catalog rows of one category.
    """
    view = active_catalog()
    category = _category(args.category)
    rows = catalog_rows(view.items, SUBCATEGORY_BY_CATEGORY[category])
    rows = filter_catalog_rows(rows, args.search or "", args.unit or "")
    source = "admin" if view.is_override else "built-in"
    print(f"[catalog] {category} ({source} catalog, {len(rows)} rows)")
    for item in rows:
        print(
            f"  {item.sort_order:>4}  {item.activity_name} — {item.option_name}"
            f"  [{item.jam_per_unit:g} jam/{item.unit_label}]  {reference_text(item.references)}"
        )


def cmd_select(args: argparse.Namespace) -> None:
    """
    Change pathway, grade, period or period settings of the stored session.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    state = with_selection(state, targets, pathway=args.pathway, grade=args.grade, period=args.period)
    if args.semester_weeks is not None or args.year_weeks is not None:
        settings = {
            "semesterWeeks": args.semester_weeks or state.period_settings.semester_weeks,
            "yearWeeks": args.year_weeks or state.period_settings.year_weeks,
        }
        state = recompute_entries(with_period_settings(state, settings), active_catalog(config).index)
    save_state(state, config)
    print(
        f"[select] {state.pathway} · {state.grade} · {state.period.value} "
        f"(semester {state.period_settings.semester_weeks} minggu, "
        f"tahun {state.period_settings.year_weeks} minggu)"
    )


def cmd_add(args: argparse.Namespace) -> None:
    """
    Add a workload entry to the stored session.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    view = active_catalog(config)

    category = _category(args.category)
    activity = find_activity(view.index, SUBCATEGORY_BY_CATEGORY[category], args.activity)
    option = find_option(activity, args.option) if args.option else auto_option(activity)

    result = build_entry(activity, option, args.quantity, state.period, state.period_settings, category=category)
    if result.entry is None:
        raise SystemExit(f"[add] {result.error.value}: {result.message}")

    save_state(add_entry(state, category, result.entry), config)
    print(f"[add] {category}: {result.entry.activity} ({result.entry.units})")
    print(f"[add] {result.entry.computed_weekly_hours:.2f} jam/minggu (id {result.entry.id})")


def cmd_remove(args: argparse.Namespace) -> None:
    """
    Remove one entry by id.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    category = _category(args.category)
    updated = remove_entry(state, category, args.entry_id)
    if updated.entry_count() == state.entry_count():
        raise SystemExit(f"[remove] Entry not found: {args.entry_id}")
    save_state(updated, config)
    print(f"[remove] Removed {args.entry_id} from {category}")


def cmd_reset(args: argparse.Namespace) -> None:
    """
    Delete every entry of the stored session.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    save_state(reset_entries(state), config)
    print(f"[reset] Removed {state.entry_count()} entries")


def cmd_demo(args: argparse.Namespace) -> None:
    """
    Add one sample entry per category.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    demo = build_demo_entries(active_catalog(config).index, state.period, state.period_settings)
    for category, entry in demo.items():
        state = add_entry(state, category, entry)
    save_state(state, config)
    print(f"[demo] Added {len(demo)} sample entries")


def cmd_summary(args: argparse.Namespace) -> None:
    """
    Weekly hours per category against the minimum targets.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    summary = build_summary(state.entries_by_category, targets, state.pathway, state.grade)

    print(f"[summary] {state.pathway} · {state.grade} · {state.period.value}")
    for row in summary.categories:
        print(
            f"  {row.category:<14} {row.actual_hours:>6.1f} / {row.min_hours:>5.1f} jam"
            f"  {row.percent:>6.1f}%  {row.status.value}"
        )
    print(
        f"  {'Jumlah':<14} {summary.total_hours:>6.1f} / {summary.total_target_hours:>5.1f} jam"
        f"  {summary.status.value}"
    )
    overall = traffic_key(summary.overall_percent)
    print(f"  {'Keseluruhan':<14} {summary.overall_percent:>6.1f}%  {TRAFFIC_LABELS[overall]}")


def cmd_export_csv(args: argparse.Namespace) -> None:
    """
    Write the session entries as a CSV report.
    """
    config = get_config()
    targets = MinimumTargetTable.load_default()
    state = load_state(targets, config)
    if state.entry_count() == 0:
        raise SystemExit("[export-csv] No entries to export.")

    dest = Path(args.dest_path)
    if dest.suffix.lower() != ".csv":
        dest = dest / report_filename(state.pathway, state.grade)
    rows = build_report_rows(state, active_catalog(config).index)
    write_report_csv(rows, str(dest))
    print(f"[export-csv] Wrote {len(rows)} rows to {dest.resolve()}")


def cmd_validate_catalog(args: argparse.Namespace) -> None:
    """
    Check a catalog file: schema, duplicate ids, category coverage.
    """
    if args.catalog_path:
        path = Path(args.catalog_path).resolve()
        if not path.exists():
            raise SystemExit(f"[validate-catalog] Catalog file not found: {path}")
        catalog = read_json_file(str(path))
    else:
        catalog = load_base_catalog()

    problems = validate_catalog(catalog)
    if problems:
        print("[validate-catalog] Catalog validation failed:")
        for problem in problems:
            print(f"- {problem}")
        raise SystemExit(1)
    print(f"[validate-catalog] Catalog items: {len(catalog['items'])}")
    print("[validate-catalog] Catalog validation succeeded.")


def cmd_import_catalog(args: argparse.Namespace) -> None:
    """
    Replace the active catalog with a JSON file (all or nothing).
    """
    path = Path(args.catalog_path).resolve()
    if not path.exists():
        raise SystemExit(f"[import-catalog] Catalog file not found: {path}")

    result = parse_catalog_document(path.read_text(encoding="utf-8"))
    if result.catalog is None:
        raise SystemExit(f"[import-catalog] {result.message}")
    save_catalog_override(result.catalog, get_config())
    print(f"[import-catalog] Imported {len(result.catalog['items'])} items from {path}")


def cmd_export_catalog(args: argparse.Namespace) -> None:
    """
    Write the active catalog with export metadata.
    """
    config = get_config()
    dest = Path(args.dest_path)
    if dest.suffix.lower() != ".json":
        dest = dest / catalog_filename()
    payload = export_catalog(active_catalog(config).document, config.app_version)
    write_json_file(payload, str(dest))
    print(f"[export-catalog] Wrote {len(payload['items'])} items to {dest.resolve()}")


def cmd_restore_catalog(args: argparse.Namespace) -> None:
    """
    Drop the admin catalog and go back to the built-in one.
    """
    clear_catalog_override(get_config())
    print("[restore-catalog] Built-in catalog restored.")


# --- Main --------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="BTA CLI – weekly workload against minimum targets, catalog maintenance."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # weekly-hours
    wh_p = subparsers.add_parser("weekly-hours", help="Convert quantity x rate into weekly hours.")
    wh_p.add_argument("quantity", type=float)
    wh_p.add_argument("rate", type=float, help="Hours per unit.")
    wh_p.add_argument("--period", choices=PERIOD_CHOICES, default=PERIOD_CHOICES[0])
    wh_p.add_argument("--semester-weeks", type=int, default=None)
    wh_p.add_argument("--year-weeks", type=int, default=None)
    wh_p.set_defaults(func=cmd_weekly_hours)

    # targets
    tg_p = subparsers.add_parser("targets", help="Show minimum targets.")
    tg_p.add_argument("pathway")
    tg_p.add_argument("grade", nargs="?", default=None)
    tg_p.set_defaults(func=cmd_targets)

    # catalog
    ct_p = subparsers.add_parser("catalog", help="List active catalog rows of a category.")
    ct_p.add_argument("category")
    ct_p.add_argument("--search", default="")
    ct_p.add_argument("--unit", default="", help="Exact unit label filter (e.g. jam).")
    ct_p.set_defaults(func=cmd_catalog)

    # select
    sel_p = subparsers.add_parser("select", help="Set pathway, grade, period and period settings.")
    sel_p.add_argument("--pathway", default=None)
    sel_p.add_argument("--grade", default=None)
    sel_p.add_argument("--period", choices=PERIOD_CHOICES, default=None)
    sel_p.add_argument("--semester-weeks", type=int, default=None)
    sel_p.add_argument("--year-weeks", type=int, default=None)
    sel_p.set_defaults(func=cmd_select)

    # add
    add_p = subparsers.add_parser("add", help="Add a workload entry.")
    add_p.add_argument("category")
    add_p.add_argument("activity", help="Activity name as shown in the catalog.")
    add_p.add_argument("quantity")
    add_p.add_argument(
        "--option",
        default=None,
        help="Option name; may be omitted when the activity has a single option.",
    )
    add_p.set_defaults(func=cmd_add)

    # remove
    rm_p = subparsers.add_parser("remove", help="Remove a workload entry.")
    rm_p.add_argument("category")
    rm_p.add_argument("entry_id")
    rm_p.set_defaults(func=cmd_remove)

    # reset / demo / summary
    subparsers.add_parser("reset", help="Remove all entries.").set_defaults(func=cmd_reset)
    subparsers.add_parser("demo", help="Add one sample entry per category.").set_defaults(func=cmd_demo)
    subparsers.add_parser("summary", help="Totals against targets.").set_defaults(func=cmd_summary)

    # export-csv
    csv_p = subparsers.add_parser("export-csv", help="Write a CSV report.")
    csv_p.add_argument("dest_path", nargs="?", default=".", help="CSV file or directory.")
    csv_p.set_defaults(func=cmd_export_csv)

    # catalog maintenance
    val_p = subparsers.add_parser("validate-catalog", help="Validate a catalog JSON file.")
    val_p.add_argument("catalog_path", nargs="?", default=None, help="Defaults to the built-in catalog.")
    val_p.set_defaults(func=cmd_validate_catalog)

    imp_p = subparsers.add_parser("import-catalog", help="Activate a catalog JSON file.")
    imp_p.add_argument("catalog_path")
    imp_p.set_defaults(func=cmd_import_catalog)

    exp_p = subparsers.add_parser("export-catalog", help="Export the active catalog.")
    exp_p.add_argument("dest_path", nargs="?", default=".", help="JSON file or directory.")
    exp_p.set_defaults(func=cmd_export_catalog)

    subparsers.add_parser(
        "restore-catalog", help="Discard admin catalog changes."
    ).set_defaults(func=cmd_restore_catalog)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(get_config().log_level)
    args.func(args)


if __name__ == "__main__":
    main()
