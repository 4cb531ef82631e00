import json

import pytest

from cookbook_rag import app
from services.models import RecipeContext


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(app, "configure_logging", lambda config=None: None)


def test_import_without_mode_prints_usage(capsys):
    assert app.main(["import"]) == 0
    assert "USAGE" in capsys.readouterr().out


def test_import_modes_are_exclusive():
    with pytest.raises(SystemExit):
        app.main(["import", "--dry-run", "--import"])


def test_import_rejects_bad_limit(capsys):
    assert app.main(["import", "--import", "--limit", "0"]) == 2
    assert "--limit" in capsys.readouterr().err


def test_import_missing_file(tmp_path):
    assert app.main(["import", "--dry-run", str(tmp_path / "missing.pdf")]) == 1


def test_import_dry_run(tmp_path, monkeypatch):
    seen = {}

    class FakeImporter:
        def __init__(self, use_index=True):
            seen["use_index"] = use_index

        def import_file(self, path, dry_run=False, limit=None):
            seen.update(path=path, dry_run=dry_run, limit=limit)

    monkeypatch.setattr("services.importer.RecipeImporter", FakeImporter)

    assert app.main(["import", "--dry-run", "--no-index", "book.pdf"]) == 0
    assert seen == {"use_index": False, "path": "book.pdf", "dry_run": True, "limit": None}


def test_context_json(monkeypatch, capsys):
    result = RecipeContext(context="=== ctx ===", recipes_found=1, queries_used=("Phở bò", "Phở bò công thức"))
    calls = []

    def fake_retrieve(self, dish_name, categories=()):
        calls.append((dish_name, list(categories)))
        return result

    monkeypatch.setattr("services.context.RecipeContextService.retrieve_context", fake_retrieve)

    assert app.main(["context", "Phở bò", "--hint", "mon-chinh", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["recipesFound"] == 1
    assert calls == [("Phở bò", ["mon-chinh"])]


def test_context_without_matches(monkeypatch, capsys):
    empty = RecipeContext(context="", recipes_found=0, queries_used=("Món lạ", "Món lạ công thức"))
    monkeypatch.setattr(
        "services.context.RecipeContextService.retrieve_context",
        lambda self, dish_name, categories=(): empty,
    )
    assert app.main(["context", "Món lạ"]) == 0
    assert "No similar recipes found" in capsys.readouterr().out
