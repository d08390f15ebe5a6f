import pytest

from bta_workload.text import normalize_title_case, split_activity_label


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("PENYELIAAN PHD", "Penyeliaan PhD"),
        ("penyeliaan msc", "Penyeliaan MSc"),
        ("kuliah/tutorial", "Kuliah/Tutorial"),
        ("gred DG41", "Gred DG41"),
        ("projek (ums)", "Projek (UMS)"),
        ("  dua   ruang ", "  Dua   Ruang "),
        ("", ""),
    ],
)
def test_normalize_title_case(raw, expected):
    assert normalize_title_case(raw) == expected


def test_split_activity_label():
    assert split_activity_label("Kuliah — Prasiswazah") == ("Kuliah", "Prasiswazah")
    assert split_activity_label("Kuliah") == ("Kuliah", "")
    assert split_activity_label("A — B — C") == ("A", "B — C")
