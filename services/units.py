import re
from typing import Dict, Optional, Tuple

MASS_UNITS: Dict[str, str] = {
    "mg": "mg",
    "g": "g",
    "gr": "g",
    "gram": "g",
    "gam": "g",
    "kg": "kg",
    "ký": "kg",
    "lạng": "lạng",
    "oz": "oz",
    "lb": "lb",
}

VOLUME_UNITS: Dict[str, str] = {
    "ml": "ml",
    "l": "l",
    "lít": "l",
    "cup": "cup",
    "cups": "cup",
    "tbsp": "tbsp",
    "tsp": "tsp",
    "muỗng": "muỗng",
    "muỗng canh": "muỗng canh",
    "muỗng cà phê": "muỗng cà phê",
    "thìa": "thìa",
    "chén": "chén",
    "bát": "bát",
    "ly": "ly",
}

# Vietnamese classifiers used as counting units in ingredient lists.
COUNT_UNITS: Dict[str, str] = {
    "củ": "củ",
    "quả": "quả",
    "trái": "trái",
    "con": "con",
    "miếng": "miếng",
    "lát": "lát",
    "nhánh": "nhánh",
    "tép": "tép",
    "bó": "bó",
    "cây": "cây",
    "gói": "gói",
    "hộp": "hộp",
    "lon": "lon",
    "cái": "cái",
    "tai": "tai",
}

UNIT_ALIASES: Dict[str, str] = {**MASS_UNITS, **VOLUME_UNITS, **COUNT_UNITS}

# Longest alias first so "muỗng canh" wins over "muỗng" and "kg" over "g".
_UNIT_ALTERNATION = "|".join(
    re.escape(alias) for alias in sorted(UNIT_ALIASES, key=len, reverse=True)
)

QUANTITY_PREFIX_RE = re.compile(
    rf"^(?P<quantity>\d+(?:[.,]\d+)?(?:/\d+)?\s*(?:{_UNIT_ALTERNATION})?)\s+(?P<rest>.+)$",
    re.IGNORECASE,
)


def split_quantity(text: str) -> Optional[Tuple[str, str]]:
    """Split "200g thịt ba chỉ" into ("200g", "thịt ba chỉ").

    Returns None when the text does not start with a number followed by a name.
    """
    match = QUANTITY_PREFIX_RE.match(str(text or "").strip())
    if not match:
        return None
    quantity = match.group("quantity").strip()
    rest = match.group("rest").strip()
    if not rest:
        return None
    return quantity, rest
