"""Split cookbook text into candidate recipe blocks and extract records from them.

Blocks are found by proximity: every ingredients marker opens a block that
reaches back ``lookback_chars`` characters for the dish name and runs until the
next ingredients marker. A block without a steps marker cannot hold a recipe
and is dropped. Missed recipes and a little title bleed-through from the
previous page are accepted failure modes of this layout-agnostic approach.
"""
import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional, Union

from cookbook_rag.rag.defaults import INGREDIENTS_MARKER, LOOKBACK_CHARS, STEPS_MARKER, extraction_defaults
from services.extractor import RecordExtractor
from services.models import ExtractedRecord, ParseReport

logger = logging.getLogger(__name__)

Marker = Union[str, re.Pattern]


def _compile(marker: Marker) -> re.Pattern:
    if isinstance(marker, re.Pattern):
        return marker
    return re.compile(marker, re.IGNORECASE)


def segment(
    text: str,
    section_marker_a: Marker = INGREDIENTS_MARKER,
    section_marker_b: Marker = STEPS_MARKER,
    lookback_chars: int = LOOKBACK_CHARS,
) -> List[str]:
    """Return the raw blocks that contain both section markers, in document order."""
    if lookback_chars < 0:
        raise ValueError("lookback_chars must be >= 0")

    normalized = unicodedata.normalize("NFC", str(text or ""))
    marker_a = _compile(section_marker_a)
    marker_b = _compile(section_marker_b)

    positions = [match.start() for match in marker_a.finditer(normalized)]
    logger.debug("Found %s ingredients markers", len(positions))

    blocks: List[str] = []
    for index, start in enumerate(positions):
        end = positions[index + 1] if index + 1 < len(positions) else len(normalized)
        block = normalized[max(0, start - lookback_chars) : end]
        if marker_b.search(block):
            blocks.append(block)

    logger.debug("Created %s recipe blocks", len(blocks))
    return blocks


class DocumentSegmenter:
    def __init__(
        self,
        ingredients_marker: Marker = INGREDIENTS_MARKER,
        steps_marker: Marker = STEPS_MARKER,
        lookback_chars: int = LOOKBACK_CHARS,
        extractor: Optional[RecordExtractor] = None,
    ):
        if lookback_chars < 0:
            raise ValueError("lookback_chars must be >= 0")
        self.ingredients_marker = _compile(ingredients_marker)
        self.steps_marker = _compile(steps_marker)
        self.lookback_chars = lookback_chars
        self.extractor = extractor or RecordExtractor(ingredients_marker=self.ingredients_marker.pattern)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "DocumentSegmenter":
        defaults = extraction_defaults(config)
        return cls(
            ingredients_marker=defaults["ingredients_marker"],
            steps_marker=defaults["steps_marker"],
            lookback_chars=defaults["lookback_chars"],
        )

    def segment(self, text: str) -> List[str]:
        return segment(text, self.ingredients_marker, self.steps_marker, self.lookback_chars)

    def parse(self, text: str) -> ParseReport:
        """Extract every valid record; bad blocks are counted, never raised."""
        blocks = self.segment(text)
        logger.info("Found %s potential recipe blocks", len(blocks))

        records: List[ExtractedRecord] = []
        rejected = 0
        for index, block in enumerate(blocks):
            try:
                record = self.extractor.extract(block)
            except Exception as exc:
                logger.warning("Failed to parse recipe block %s: %s", index, exc)
                record = None
            if record is None:
                rejected += 1
                continue
            records.append(record)

        logger.info("Parsed %s recipes (%s blocks rejected)", len(records), rejected)
        return ParseReport(records=records, blocks_found=len(blocks), rejected=rejected)


def parse_document(text: str, config: Optional[Dict[str, Any]] = None) -> ParseReport:
    return DocumentSegmenter.from_config(config).parse(text)
