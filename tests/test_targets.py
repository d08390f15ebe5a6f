import pytest

from bta_workload.schema import CATEGORIES, PATHWAYS
from bta_workload.targets import MinimumTargetTable


def test_pathways_follow_source_order(targets):
    assert targets.pathways() == PATHWAYS


def test_grades_in_insertion_order(targets):
    assert targets.grades("Guru") == ["DG41", "DG44", "DG48", "DG52", "DG54"]


def test_unknown_pathway_has_no_grades(targets):
    assert targets.grades("Angkasawan") == []


def test_every_grade_has_seven_categories_summing_to_forty_hours(targets):
    for pathway in targets.pathways():
        grades = targets.grades(pathway)
        assert grades
        for grade in grades:
            rows = targets.targets_by_category(pathway, grade)
            assert [r.category for r in rows] == CATEGORIES
            assert targets.total_target_hours(pathway, grade) == pytest.approx(40.0, abs=1e-4)
            assert sum(r.percent for r in rows) == pytest.approx(1.0, abs=1e-4)


def test_packaged_table_has_no_inconsistent_rows(targets):
    assert targets.inconsistent_rows() == []


def test_unknown_grade_yields_zero_targets(targets):
    rows = targets.targets_by_category("Guru", "XX99")
    assert len(rows) == 7
    assert all(r.percent == 0 and r.min_hours == 0 for r in rows)
    assert targets.total_target_hours("Guru", "XX99") == 0


def test_categories_absent_from_a_row_default_to_zero(targets):
    by_category = targets.min_hours_by_category("Pentadbir", "N41")
    assert by_category["Pengajaran"] == 0
    assert by_category["Pentadbiran"] == 34
    assert targets.total_target_hours("Pentadbir", "N41") == pytest.approx(40)


def test_fixture_table_can_be_injected():
    table = MinimumTargetTable.from_dict(
        {
            "categories": CATEGORIES,
            "targets": {
                "Ujian": {
                    "A1": {"Pengajaran": {"percent": 1.0, "minHours": 40}},
                    "B2": {"Pengajaran": {"percent": 0.5, "minHours": 20}},
                }
            },
        }
    )
    assert table.grades("Ujian") == ["A1", "B2"]
    assert table.targets_by_category("Ujian", "A1")[0].min_hours == 40
    assert table.inconsistent_rows() == [("Ujian", "B2", 20.0, 0.5)]


def test_from_json(tmp_path):
    path = tmp_path / "targets.json"
    path.write_text(
        '{"version": "t", "targets": {"Guru": {"DG41": {"Pengajaran": {"percent": 1, "minHours": 40}}}}}',
        encoding="utf-8",
    )
    table = MinimumTargetTable.from_json(path)
    assert table.version == "t"
    assert table.categories == CATEGORIES
    assert table.total_target_hours("Guru", "DG41") == 40


def test_table_is_detached_from_source_mapping():
    source = {"Guru": {"DG41": {"Pengajaran": {"percent": 1.0, "minHours": 40}}}}
    table = MinimumTargetTable(source)
    source["Guru"]["DG41"]["Pengajaran"]["minHours"] = 0
    source["Guru"]["DG99"] = {}
    assert table.total_target_hours("Guru", "DG41") == 40
    assert table.grades("Guru") == ["DG41"]
