import copy

import pytest

from bta_workload import config as config_module
from bta_workload.catalog import build_index, load_base_catalog, normalize_catalog
from bta_workload.config import Config
from bta_workload.schema import PeriodSettings
from bta_workload.targets import MinimumTargetTable


@pytest.fixture(scope="session")
def targets():
    return MinimumTargetTable.load_default()


@pytest.fixture(scope="session")
def _base_catalog():
    return load_base_catalog()


@pytest.fixture
def base_catalog(_base_catalog):
    return copy.deepcopy(_base_catalog)


@pytest.fixture
def items(base_catalog):
    return normalize_catalog(base_catalog)


@pytest.fixture
def index(items):
    return build_index(items)


@pytest.fixture
def settings():
    return PeriodSettings(semester_weeks=14, year_weeks=52)


@pytest.fixture
def config(tmp_path):
    return Config(
        state_path=str(tmp_path / "state.json"),
        catalog_override_path=str(tmp_path / "catalog-admin.json"),
    )


@pytest.fixture
def env_config(tmp_path, monkeypatch):
    """Point the process-wide config at a temp directory via env vars."""
    monkeypatch.setenv("BTA_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("BTA_CATALOG_OVERRIDE_PATH", str(tmp_path / "catalog-admin.json"))
    monkeypatch.setenv("BTA_STORAGE_BACKEND", "local")
    monkeypatch.setattr(config_module, "_DEFAULT_CONFIG", None)
    return tmp_path


def activity_named(index, sub_category_id, name):
    return next(a for a in index[sub_category_id] if a.activity_name == name)


def option_named(activity, name):
    return next(o for o in activity.options if o.option_name == name)


def make_record(record_id, sub="SUB_TEACH", activity=("ACT", "Aktiviti"), option=("OPT", "Pilihan"),
                unit=("hour", "jam"), rate=1.0, sort_order=None, status="active", **extra):
    record = {
        "id": record_id,
        "status": status,
        "subCategoryId": sub,
        "activity": {"code": activity[0], "nameMs": activity[1]},
        "option": {"code": option[0], "nameMs": option[1]},
        "unit": {"code": unit[0], "labelMs": unit[1]},
        "jamPerUnit": rate,
    }
    if sort_order is not None:
        record["sortOrder"] = sort_order
    record.update(extra)
    return record
