import dataclasses
import logging
import re
import unicodedata
from typing import List, Optional, Sequence

from cookbook_rag.rag.defaults import INGREDIENTS_MARKER
from services.categories import CategoryClassifier
from services.ingredients import IngredientParser
from services.models import ExtractedRecord
from services.steps import StepParser

logger = logging.getLogger(__name__)

MIN_BLOCK_LINES = 5
MIN_TITLE_CHARS = 5
MAX_TITLE_CHARS = 100
MIN_CANDIDATE_CHARS = 5
MAX_CANDIDATE_CHARS = 80
MAX_CONFIDENT_TITLE_CHARS = 60
MAX_DESCRIPTION_CHARS = 200

INGREDIENT_SECTION_KEYWORDS = ("vật liệu", "nguyên liệu", "ingredients")
STEP_SECTION_KEYWORDS = ("cách làm", "cách chế biến", "steps", "instructions")

# Running headers of the scanned book ("MON CHAY", "NHA XUAT BAN", ...).
BOILERPLATE_PREFIX_RE = re.compile(r"^(?:MON|CHAY|NHA|XUAT|BAN|VAN|HOA|THONG|TIN)", re.IGNORECASE)
DIGITS_ONLY_RE = re.compile(r"^\d+$")
PUNCTUATION_ONLY_RE = re.compile(r"^[.,;:\-•*]+$")
ENUMERATION_PREFIX_RE = re.compile(r"^\d+[.\-•*]\s*")
LABEL_PREFIX_RE = re.compile(r"^(?:công thức|món|recipe|dish)\s*[:\-]\s*", re.IGNORECASE)

TIME_UNITS = r"phút|giờ|minutes?|hours?"
PREP_TIME_RE = re.compile(rf"chuẩn bị[:\s]+(\d+)\s*({TIME_UNITS})", re.IGNORECASE)
COOK_TIME_RE = re.compile(rf"(?:nấu|hầm|chưng|chiên|xào)[:\s]+(\d+)\s*({TIME_UNITS})", re.IGNORECASE)
SERVINGS_RE = re.compile(r"(\d+)\s*(người|phần|servings?|portions?)", re.IGNORECASE)

DEFAULT_PREP_TIME = "20 phút"
DEFAULT_COOK_TIME = "30 phút"
DEFAULT_SERVINGS = "4 người"


def _is_title_candidate(line: str) -> bool:
    if len(line) < MIN_CANDIDATE_CHARS or len(line) > MAX_CANDIDATE_CHARS:
        return False
    if DIGITS_ONLY_RE.match(line):
        return False
    if BOILERPLATE_PREFIX_RE.match(line):
        return False
    if PUNCTUATION_ONLY_RE.match(line):
        return False
    # Tail of the previous recipe's method text.
    if line.endswith(".") and len(line) >= 2 and line[-2].islower():
        return False
    return True


def _clean_title(title: str) -> str:
    cleaned = ENUMERATION_PREFIX_RE.sub("", title).strip()
    cleaned = LABEL_PREFIX_RE.sub("", cleaned).strip()
    if cleaned.endswith("."):
        cleaned = cleaned[:-1].strip()
    return cleaned


def _find_section_start(lines: Sequence[str], keywords: Sequence[str]) -> int:
    for index, line in enumerate(lines):
        lowered = line.lower()
        if any(keyword in lowered for keyword in keywords):
            return index
    return -1


def _extract_timing(pattern: re.Pattern, block: str, default: str) -> str:
    match = pattern.search(block)
    if not match:
        return default
    return f"{match.group(1)} {match.group(2)}"


class RecordExtractor:
    """Turn one raw block into a validated recipe record, or None."""

    def __init__(
        self,
        ingredients_marker: str = INGREDIENTS_MARKER,
        ingredient_parser: Optional[IngredientParser] = None,
        step_parser: Optional[StepParser] = None,
        classifier: Optional[CategoryClassifier] = None,
    ):
        self.marker_re = re.compile(ingredients_marker, re.IGNORECASE)
        self.ingredient_parser = ingredient_parser or IngredientParser()
        self.step_parser = step_parser or StepParser()
        self.classifier = classifier or CategoryClassifier()

    def resolve_title(self, lines: Sequence[str]) -> str:
        marker_index = next(
            (index for index, line in enumerate(lines) if self.marker_re.match(line)),
            -1,
        )
        if marker_index <= 0:
            return ""

        candidates = [line for line in lines[:marker_index] if _is_title_candidate(line)]
        if not candidates:
            return ""

        title = candidates[-1]
        if (len(title) > MAX_CONFIDENT_TITLE_CHARS or title.endswith(".")) and len(candidates) > 1:
            title = candidates[-2]
        return _clean_title(title)

    def extract(self, block: str) -> Optional[ExtractedRecord]:
        text = unicodedata.normalize("NFC", str(block or ""))
        lines: List[str] = [line.strip() for line in text.splitlines() if line.strip()]
        if len(lines) < MIN_BLOCK_LINES:
            return None

        title = self.resolve_title(lines)
        if not (MIN_TITLE_CHARS <= len(title) <= MAX_TITLE_CHARS):
            logger.debug("Skipping block with invalid title: %r", title)
            return None

        ingredients_start = _find_section_start(lines, INGREDIENT_SECTION_KEYWORDS)
        steps_start = _find_section_start(lines, STEP_SECTION_KEYWORDS)
        if ingredients_start < 0 or steps_start < 0 or steps_start <= ingredients_start:
            logger.debug("Skipping recipe missing sections: %s", title)
            return None

        ingredients = self.ingredient_parser.parse(lines[ingredients_start + 1 : steps_start])
        steps = self.step_parser.parse(lines[steps_start + 1 :])

        description = ", ".join(item.name for item in ingredients[:3]) or f"Món ăn {title}"

        record = ExtractedRecord(
            title=title,
            description=description[:MAX_DESCRIPTION_CHARS],
            prep_time=_extract_timing(PREP_TIME_RE, text, DEFAULT_PREP_TIME),
            cook_time=_extract_timing(COOK_TIME_RE, text, DEFAULT_COOK_TIME),
            servings=_extract_timing(SERVINGS_RE, text, DEFAULT_SERVINGS),
            ingredients=tuple(ingredients),
            steps=tuple(steps),
        )
        if not is_valid_record(record):
            logger.debug(
                "Rejecting %s: %s ingredients, %s steps",
                title,
                len(record.ingredients),
                len(record.steps),
            )
            return None

        return dataclasses.replace(record, categories=self.classifier.classify(record))


def is_valid_record(record: ExtractedRecord) -> bool:
    return len(record.title) >= 3 and len(record.ingredients) >= 2 and len(record.steps) >= 2


def extract_record(block: str) -> Optional[ExtractedRecord]:
    return RecordExtractor().extract(block)
