import logging
from unittest.mock import MagicMock

import pytest

from cookbook_rag.db import connect
from services import recipe_store
from services.importer import RecipeImporter
from services.segmenter import DocumentSegmenter

COOKBOOK = """Thịt kho tiêu
VẬT LIỆU:
200g thịt ba chỉ
2 củ hành
CÁCH LÀM:
1. Sơ chế thịt.
2. Kho trong 30 phút.
Canh chua cá lóc
VẬT LIỆU:
Cá lóc: 1 con
Me chua
CÁCH LÀM:
1. Làm sạch cá.
2. Nấu nước me.
"""


@pytest.fixture(autouse=True)
def temp_db(tmp_path):
    original_db_path = connect.get_db_path()
    connect.set_db_path(tmp_path / "import.db")
    yield
    connect.set_db_path(original_db_path)


@pytest.fixture
def cookbook(tmp_path):
    path = tmp_path / "cookbook.txt"
    path.write_text(COOKBOOK, encoding="utf-8")
    return str(path)


@pytest.fixture
def index():
    mock_index = MagicMock()
    mock_index.is_available.return_value = True
    return mock_index


def _importer(index, **kwargs):
    return RecipeImporter(segmenter=DocumentSegmenter(lookback_chars=30), index=index, **kwargs)


def test_dry_run_stores_nothing(cookbook, index):
    summary = _importer(index).import_file(cookbook, dry_run=True)

    assert summary.to_dict() == {"imported": 0, "skipped": 0, "errors": 0, "total": 2}
    index.add_record.assert_not_called()
    assert not (connect.get_db_path()).exists()


def test_import_stores_and_indexes(cookbook, index):
    summary = _importer(index).import_file(cookbook)

    assert summary.imported == 2
    assert index.add_record.call_count == 2
    stored = recipe_store.get_recipe("Canh chua cá lóc")
    assert stored["ingredients"][0] == {"name": "Cá lóc", "quantity": "1 con"}


def test_reimport_skips_duplicates(cookbook, index):
    _importer(index).import_file(cookbook)
    summary = _importer(index).import_file(cookbook)

    assert summary.imported == 0
    assert summary.skipped == 2
    assert recipe_store.count_recipes() == 2


def test_limit(cookbook, index):
    summary = _importer(index).import_file(cookbook, limit=1)
    assert summary.imported == 1
    assert summary.total == 2
    assert recipe_store.recipe_exists("Thịt kho tiêu")
    assert not recipe_store.recipe_exists("Canh chua cá lóc")


def test_index_failure_rolls_back_recipe(cookbook, index):
    index.add_record.side_effect = [RuntimeError("embedding failed"), "doc-id"]
    summary = _importer(index).import_file(cookbook)

    assert summary.errors == 1
    assert summary.imported == 1
    assert not recipe_store.recipe_exists("Thịt kho tiêu")
    assert recipe_store.recipe_exists("Canh chua cá lóc")


def test_rerun_indexes_recipe_that_failed_before(cookbook, index):
    index.add_record.side_effect = [RuntimeError("embedding failed"), "doc-id"]
    _importer(index).import_file(cookbook)

    healthy = MagicMock()
    healthy.is_available.return_value = True
    summary = _importer(healthy).import_file(cookbook)

    assert summary.imported == 1
    assert summary.skipped == 1
    indexed = [call.args[0].title for call in healthy.add_record.call_args_list]
    assert indexed == ["Thịt kho tiêu"]
    assert recipe_store.count_recipes() == 2


def test_summary_logged_as_warning_when_recipes_fail(cookbook, index, caplog):
    index.add_record.side_effect = RuntimeError("embedding failed")
    with caplog.at_level(logging.INFO, logger="services.importer"):
        _importer(index).import_file(cookbook)

    summary_record = [record for record in caplog.records if record.getMessage().startswith("IMPORT SUMMARY")][-1]
    assert summary_record.levelno == logging.WARNING
    assert summary_record.source_file == cookbook
    assert summary_record.extra_data["errors"] == 2


def test_import_without_index(cookbook, index):
    summary = _importer(index, use_index=False).import_file(cookbook)
    assert summary.imported == 2
    index.add_record.assert_not_called()


def test_unavailable_index_still_stores(cookbook, monkeypatch):
    monkeypatch.setattr("services.rag.get_recipe_index", lambda: None)
    summary = RecipeImporter(segmenter=DocumentSegmenter(lookback_chars=30)).import_file(cookbook)
    assert summary.imported == 2


def test_missing_file(tmp_path, index):
    with pytest.raises(FileNotFoundError):
        _importer(index).import_file(str(tmp_path / "missing.pdf"))
