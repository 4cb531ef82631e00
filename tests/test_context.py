from unittest.mock import MagicMock

from cookbook_rag.llm.prompts import CONTEXT_FOOTER, CONTEXT_HEADER
from services.context import RecipeContextService, assemble, build_context, render_match
from services.models import RetrievalResult, SimilarityMatch

CONFIG = {"rag": {"top_k": 3, "similarity_threshold": 0.5, "context_limit": 3, "variant_timeout_seconds": 5}}


def _match(identity, score, **metadata):
    return SimilarityMatch(identity, f"Món: {identity}\nNguyên liệu: ...", metadata, score)


class FakeIndex:
    def __init__(self, hits=None, available=True):
        self.hits = hits or []
        self.available = available
        self.queries = []

    def is_available(self):
        return self.available

    def search(self, query_text, k):
        self.queries.append(query_text)
        return list(self.hits)


def test_no_matches_gives_empty_context():
    assert assemble([]) == ""


def test_render_match_heading_and_timing():
    text = render_match(1, _match("Phở bò", 0.2, prepTime="20 phút", cookTime="2 giờ", servings="4 người"))
    lines = text.splitlines()
    assert lines[0] == "Công thức tham khảo 1 (độ tương đồng: 0.80):"
    assert lines[1] == "Món: Phở bò"
    assert lines[-1] == "Thời gian: Chuẩn bị 20 phút, Nấu 2 giờ, Phục vụ 4 người"


def test_render_match_without_timing():
    text = render_match(2, _match("Bún chả", 0.35))
    assert text.splitlines()[0] == "Công thức tham khảo 2 (độ tương đồng: 0.65):"
    assert "Thời gian" not in text


def test_assemble_orders_references():
    context = assemble([_match("Phở bò", 0.1), _match("Phở gà", 0.3)])
    assert context.startswith(CONTEXT_HEADER + "\n")
    assert context.endswith(CONTEXT_FOOTER)
    assert context.index("tham khảo 1") < context.index("tham khảo 2")
    assert "Món: Phở gà" in context


def test_build_context_counts():
    result = RetrievalResult(matches=(_match("Phở bò", 0.1),), queries_used=("Phở bò", "Phở bò công thức"))
    context = build_context(result)
    assert context.recipes_found == 1
    assert context.to_dict()["queriesUsed"] == ["Phở bò", "Phở bò công thức"]


def test_service_uses_index_search():
    index = FakeIndex(hits=[_match("Phở bò", 0.2, servings="2 người")])
    context = RecipeContextService(index=index, config=CONFIG).retrieve_context("Phở bò", ["mon-chinh"])

    assert context.recipes_found == 1
    assert context.queries_used == ("Phở bò", "Phở bò công thức", "Phở bò món chính")
    assert sorted(index.queries) == sorted(context.queries_used)
    assert "Phục vụ 2 người" in context.context


def test_service_with_unavailable_index():
    index = FakeIndex(available=False)
    context = RecipeContextService(index=index, config=CONFIG).retrieve_context("Phở bò")
    assert context.to_dict() == {"context": "", "recipesFound": 0, "queriesUsed": []}
    assert index.queries == []


def test_service_survives_search_errors():
    index = MagicMock()
    index.is_available.return_value = True
    index.search.side_effect = RuntimeError("collection missing")

    context = RecipeContextService(index=index, config=CONFIG).retrieve_context("Phở bò")

    assert context.context == ""
    assert context.recipes_found == 0


def test_service_without_index(monkeypatch):
    monkeypatch.setattr("services.rag.get_recipe_index", lambda: None)
    context = RecipeContextService(config=CONFIG).retrieve_context("Phở bò")
    assert context.recipes_found == 0
