import pytest

from cookbook_rag import config as cr_config
from cookbook_rag.rag import defaults


@pytest.fixture(autouse=True)
def fresh_config():
    cr_config.reload_config()
    yield
    cr_config.load_config.cache_clear()


def test_resolve_path_absolute_from_relative(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("memory:\n  db_path: data/custom.db\n", encoding="utf-8")
    monkeypatch.setenv("COOKBOOK_RAG_CONFIG", str(cfg_path))
    monkeypatch.delenv("COOKBOOK_RAG_DB_PATH", raising=False)
    cr_config.reload_config()

    db_path = cr_config.get_db_path()
    assert db_path.is_absolute()
    assert str(db_path).endswith("data/custom.db")


def test_env_override_db_path(monkeypatch, tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("memory:\n  db_path: data/from_yaml.db\n", encoding="utf-8")
    monkeypatch.setenv("COOKBOOK_RAG_CONFIG", str(cfg_path))
    monkeypatch.setenv("COOKBOOK_RAG_DB_PATH", str(tmp_path / "override.db"))
    cr_config.reload_config()

    assert cr_config.get_db_path() == (tmp_path / "override.db").resolve()


def test_env_override_rag_numbers(monkeypatch, tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("rag:\n  top_k: 7\n  similarity_threshold: 0.9\n", encoding="utf-8")
    monkeypatch.setenv("COOKBOOK_RAG_CONFIG", str(cfg_path))
    monkeypatch.setenv("RAG_TOP_K", "4")
    monkeypatch.setenv("RAG_CONTEXT_LIMIT", "not-a-number")
    monkeypatch.delenv("RAG_SIMILARITY_THRESHOLD", raising=False)
    cfg = cr_config.reload_config()

    settings = defaults.retrieval_defaults(cfg)
    assert settings["top_k"] == 4
    assert settings["similarity_threshold"] == pytest.approx(0.9)
    # Unparseable override is ignored, default applies.
    assert settings["context_limit"] == 3


def test_extraction_defaults_fall_back_to_markers():
    settings = defaults.extraction_defaults({"extraction": {"lookback_chars": 250}})
    assert settings["lookback_chars"] == 250
    assert settings["ingredients_marker"] == defaults.INGREDIENTS_MARKER
    assert settings["steps_marker"] == defaults.STEPS_MARKER


def test_null_threshold_disables_filtering():
    settings = defaults.retrieval_defaults({"rag": {"similarity_threshold": None}})
    assert settings["similarity_threshold"] is None
