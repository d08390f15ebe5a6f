import copy
import random

from bta_workload.catalog import (
    auto_option,
    build_index,
    catalog_rows,
    filter_catalog_rows,
    find_activity,
    find_option,
    next_sort_order,
    normalize_catalog,
    reference_text,
    resolve_granularity,
    unit_labels,
)
from bta_workload.schema import SUBCATEGORY_BY_CATEGORY, Granularity, Reference

from conftest import make_record


def test_deprecated_records_are_dropped(base_catalog):
    items = normalize_catalog(base_catalog)
    ids = {item.id for item in items}
    assert "BTA_TEACH_LEGACY_DISTANCE" not in ids
    assert len(items) == len(base_catalog["items"]) - 1


def test_missing_optional_fields_get_defaults():
    (item,) = normalize_catalog([make_record("X1")])
    assert item.sort_order == 0
    assert item.references == []
    assert item.tags == []
    assert item.constraints_notes is None


def test_normalize_accepts_document_or_list_and_does_not_mutate(base_catalog):
    snapshot = copy.deepcopy(base_catalog)
    from_doc = normalize_catalog(base_catalog)
    from_list = normalize_catalog(base_catalog["items"])
    assert from_doc == from_list
    assert base_catalog == snapshot


def test_reference_page_is_text(items):
    lecture = next(i for i in items if i.id == "BTA_TEACH_LECTURE_UG")
    assert lecture.references == [Reference(doc="GP-BTA", section="3.1", page="12")]


def test_granularity_follows_unit():
    assert resolve_granularity({"code": "hour"}) is Granularity.HALF
    assert resolve_granularity({"code": "student"}) is Granularity.WHOLE
    assert resolve_granularity({"code": "hour", "granularity": "whole"}) is Granularity.WHOLE
    assert resolve_granularity({"code": "day", "granularity": "half"}) is Granularity.HALF
    assert resolve_granularity({"code": "day", "granularity": "quarter"}) is Granularity.WHOLE


def test_index_covers_every_sub_category(index):
    for sub_category_id in SUBCATEGORY_BY_CATEGORY.values():
        assert index[sub_category_id]


def test_index_orders_activities_and_options(index):
    teaching = index["SUB_TEACH"]
    assert [a.activity_name for a in teaching] == ["Kuliah", "Tutorial", "Amali"]
    assert [o.option_name for o in teaching[0].options] == ["Prasiswazah", "Pascasiswazah"]


def test_activity_takes_lowest_option_sort_order():
    items = normalize_catalog(
        [
            make_record("A-late", activity=("A", "Alfa"), option=("L", "Lewat"), sort_order=50),
            make_record("B-only", activity=("B", "Beta"), sort_order=20),
            make_record("A-early", activity=("A", "Alfa"), option=("E", "Awal"), sort_order=10),
        ]
    )
    (alfa, beta) = build_index(items)["SUB_TEACH"]
    assert alfa.activity_name == "Alfa"
    assert alfa.sort_order == 10
    assert [o.id for o in alfa.options] == ["A-early", "A-late"]
    assert beta.sort_order == 20


def test_equal_sort_orders_break_ties_by_name():
    items = normalize_catalog(
        [
            make_record("Z", activity=("Z", "zeta"), sort_order=5),
            make_record("M", activity=("M", "Mu"), sort_order=5),
            make_record("A", activity=("A", "alfa"), sort_order=5),
        ]
    )
    names = [a.activity_name for a in build_index(items)["SUB_TEACH"]]
    assert names == ["alfa", "Mu", "zeta"]


def test_index_does_not_depend_on_input_order(items):
    expected = build_index(items)
    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(items)
        rng.shuffle(shuffled)
        assert build_index(shuffled) == expected


def test_conflicting_activity_names_resolve_deterministically():
    records = [
        make_record("1", activity=("K", "Kuliah Lama"), option=("A", "A"), sort_order=10),
        make_record("2", activity=("K", "Kuliah Baru"), option=("B", "B"), sort_order=10),
    ]
    forward = build_index(normalize_catalog(records))
    backward = build_index(normalize_catalog(list(reversed(records))))
    assert forward == backward
    assert forward["SUB_TEACH"][0].activity_name == "Kuliah Baru"


def test_duplicate_ids_produce_one_option():
    items = normalize_catalog([make_record("DUP", sort_order=1), make_record("DUP", sort_order=1)])
    (activity,) = build_index(items)["SUB_TEACH"]
    assert len(activity.options) == 1


def test_next_sort_order_in_empty_category_starts_after_base():
    assert next_sort_order("SUB_TEACH", []) == 200
    assert next_sort_order("UNKNOWN", []) == 10


def test_next_sort_order_follows_highest_existing(items):
    assert next_sort_order("SUB_TEACH", items) == 240
    assert next_sort_order("SUB_SVC", items) == 920


def test_next_sort_order_never_goes_below_base():
    items = normalize_catalog(
        [make_record("p1", sub="SUB_PUB", sort_order=10), make_record("p2", sub="SUB_PUB", sort_order=20)]
    )
    assert next_sort_order("SUB_PUB", items) == 490


def test_next_sort_order_ignores_other_categories(items):
    teach_only = [i for i in items if i.sub_category_id == "SUB_TEACH"]
    assert next_sort_order("SUB_CONF", teach_only) == 700


def test_repeated_allocation_never_collides():
    items = []
    for n in range(20):
        order = next_sort_order("SUB_RES", normalize_catalog(items))
        items.append(make_record(f"r{n}", sub="SUB_RES", sort_order=order))
    orders = [record["sortOrder"] for record in items]
    assert len(set(orders)) == len(orders)
    assert min(orders) >= 590


def test_catalog_rows_search_and_unit_filter(items):
    pub = catalog_rows(items, "SUB_PUB")
    assert [r.id for r in filter_catalog_rows(pub, "jurnal")] == [
        "BTA_PUB_JOURNAL_Q1",
        "BTA_PUB_JOURNAL_OTHER",
    ]
    assert [r.id for r in filter_catalog_rows(pub, "5.2")] == ["BTA_PUB_BOOK_CHAPTER"]
    teach = catalog_rows(items, "SUB_TEACH")
    assert len(filter_catalog_rows(teach, unit_label="jam")) == 4
    assert filter_catalog_rows(teach, unit_label="hari") == []


def test_unit_labels(items):
    assert unit_labels(catalog_rows(items, "SUB_CONF")) == ["hari", "sesi"]


def test_reference_text():
    assert reference_text([]) == "-"
    assert reference_text([Reference("GP-BTA", "3.1", "12")]) == "GP-BTA 3.1 (ms 12)"
    assert reference_text([Reference("A", "1"), Reference("B", "2")]) == "A 1; B 2"


def test_find_helpers(index):
    lecture = find_activity(index, "SUB_TEACH", "  kuliah ")
    assert lecture is not None
    assert find_option(lecture, "pascasiswazah").id == "BTA_TEACH_LECTURE_PG"
    assert find_option(None, "x") is None
    assert find_activity(index, "SUB_TEACH", "Tiada") is None
    assert auto_option(lecture) is None
    assert auto_option(find_activity(index, "SUB_TEACH", "Tutorial")).id == "BTA_TEACH_TUTORIAL"
