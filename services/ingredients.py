import re
from typing import Iterable, List, Optional, Tuple

from services.models import AS_NEEDED, Ingredient
from services.units import split_quantity

MAX_INGREDIENTS = 20
MIN_LINE_CHARS = 3

STEPS_HEADER_RE = re.compile(r"^(?:cách\s+làm|cách\s+chế\s+biến|bước|steps|instructions)", re.IGNORECASE)
BULLET_RE = re.compile(r"^[-*•]\s*")
COLON_RE = re.compile(r"[:：]")


def _split_name_remainder(text: str) -> Tuple[str, Optional[str]]:
    parts = COLON_RE.split(text, maxsplit=1)
    name = parts[0].strip()
    if len(parts) == 1:
        return name, None
    remainder = parts[1].strip()
    return name, remainder or None


def parse_ingredient_line(line: str) -> Optional[Ingredient]:
    """Parse one ingredient line.

    Handles the three layouts seen in scanned cookbooks:
    "200g thịt ba chỉ", "Thịt ba chỉ: 200g" and a bare "Hành lá".
    """
    text = BULLET_RE.sub("", str(line or "").strip()).strip()
    name_part, remainder = _split_name_remainder(text)
    if not name_part:
        return None

    quantity_split = split_quantity(name_part)
    if quantity_split:
        quantity, name = quantity_split
        return Ingredient(name=name, quantity=quantity)
    if remainder:
        return Ingredient(name=name_part, quantity=remainder)
    return Ingredient(name=name_part, quantity=AS_NEEDED)


class IngredientParser:
    def __init__(self, max_items: int = MAX_INGREDIENTS):
        self.max_items = max_items

    def parse(self, lines: Iterable[str]) -> List[Ingredient]:
        ingredients: List[Ingredient] = []
        for raw in lines:
            line = str(raw or "").strip()
            # A steps header or a stray page fragment ends the ingredients section.
            if len(line) < MIN_LINE_CHARS or STEPS_HEADER_RE.match(line):
                break
            ingredient = parse_ingredient_line(line)
            if ingredient is None:
                continue
            ingredients.append(ingredient)
            if len(ingredients) >= self.max_items:
                break
        return ingredients


def parse_ingredients(lines: Iterable[str]) -> List[Ingredient]:
    return IngredientParser().parse(lines)
