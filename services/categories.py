from typing import Any, Dict, FrozenSet, List, Optional, Tuple

APPETIZER = "khai-vi"
MAIN_DISH = "mon-chinh"
DESSERT = "trang-mieng"
DRINK = "do-uong"
VEGETARIAN = "mon-chay"
SEAFOOD = "hai-san"
MEAT = "thit"

DEFAULT_CATEGORY = MAIN_DISH

# Scanned in order; a dish may land in several categories.
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (APPETIZER, ("gỏi", "salad", "khai vị", "appetizer", "nem", "chả giò")),
    (MAIN_DISH, ("cơm", "bún", "phở", "mì", "miến", "canh", "lẩu", "noodle", "rice")),
    (DESSERT, ("chè", "bánh", "dessert", "ngọt", "kem", "pudding")),
    (DRINK, ("nước", "trà", "cà phê", "sinh tố", "juice", "drink", "tea", "coffee")),
    (VEGETARIAN, ("chay", "đậu hũ", "nấm", "rau", "vegetarian", "vegan")),
    (SEAFOOD, ("cá", "tôm", "mực", "nghêu", "sò", "hải sản", "seafood", "fish", "shrimp")),
    (MEAT, ("thịt", "gà", "heo", "bò", "vịt", "meat", "chicken", "pork", "beef")),
)

CATEGORIES: Tuple[str, ...] = tuple(tag for tag, _ in CATEGORY_KEYWORDS)

CATEGORY_PROMPT_HINTS: Dict[str, str] = {
    APPETIZER: "món khai vị",
    MAIN_DISH: "món chính",
    DESSERT: "món tráng miệng",
    DRINK: "đồ uống",
    VEGETARIAN: "món chay",
    SEAFOOD: "món hải sản",
    MEAT: "món thịt",
}

# Request categories a caller may pass alongside the dish name.
QUICK = "quick"
EASY = "easy"
HEALTHY = "healthy"

REQUEST_PROMPT_HINTS: Dict[str, str] = {
    QUICK: "Ưu tiên công thức dưới 20 phút, ít bước, tối giản dụng cụ.",
    EASY: "Dành cho người mới bắt đầu, bước rõ ràng, tránh kỹ thuật phức tạp.",
    HEALTHY: "Tối ưu dinh dưỡng, ít dầu mỡ, cân bằng đạm-bột-xơ, gợi ý thay thế lành mạnh.",
}


def prompt_hint(hint: str) -> Optional[str]:
    """Descriptive phrase for a request category or classifier tag; None if unknown."""
    key = str(hint or "").strip().lower()
    return REQUEST_PROMPT_HINTS.get(key) or CATEGORY_PROMPT_HINTS.get(key)


def _haystack(record: Any) -> str:
    names: List[str] = [str(getattr(item, "name", "") or "") for item in getattr(record, "ingredients", ())]
    parts = [str(getattr(record, "title", "") or ""), str(getattr(record, "description", "") or ""), *names]
    return " ".join(parts).lower()


def classify(record: Any) -> FrozenSet[str]:
    """Tag a recipe by keyword containment over title, description and ingredient names."""
    haystack = _haystack(record)
    tags = {tag for tag, keywords in CATEGORY_KEYWORDS if any(keyword in haystack for keyword in keywords)}
    if not tags:
        tags.add(DEFAULT_CATEGORY)
    return frozenset(tags)


class CategoryClassifier:
    def classify(self, record: Any) -> FrozenSet[str]:
        return classify(record)
