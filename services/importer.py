import logging
from typing import Any, Dict, List, Optional

from cookbook_rag.logging import RUN_IMPORT, correlation_context, log_import_summary
from services import recipe_store
from services.doc_extract import extract_text
from services.models import ExtractedRecord, ImportSummary, ParseReport
from services.segmenter import DocumentSegmenter

logger = logging.getLogger(__name__)

PREVIEW_COUNT = 5
SOURCE_TAG = "pdf-import"
LANGUAGE = "vi"


class RecipeImporter:
    """Import recipes from a cookbook file into the store and the vector index."""

    def __init__(
        self,
        segmenter: Optional[DocumentSegmenter] = None,
        index: Any = None,
        use_index: bool = True,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.segmenter = segmenter or DocumentSegmenter.from_config(config)
        self._index = index
        self.use_index = use_index

    def _get_index(self) -> Any:
        if not self.use_index:
            return None
        if self._index is None:
            from services.rag import get_recipe_index

            self._index = get_recipe_index()
        return self._index

    def parse_file(self, path: str) -> ParseReport:
        text, _metrics = extract_text(path)
        report = self.segmenter.parse(text)
        logger.info("Parsed %s recipes from %s", len(report.records), path)
        return report

    def preview(self, records: List[ExtractedRecord], count: int = PREVIEW_COUNT) -> None:
        logger.info("DRY RUN - first %s parsed recipes:", min(count, len(records)))
        for idx, record in enumerate(records[:count], start=1):
            logger.info("%s. %s", idx, record.title)
            logger.info("   Description: %s...", record.description[:80])
            logger.info("   Ingredients: %s", len(record.ingredients))
            logger.info("   Steps: %s", len(record.steps))
            logger.info("   Categories: %s", ", ".join(sorted(record.categories)))

    def import_record(self, record: ExtractedRecord, summary: ImportSummary) -> bool:
        try:
            if recipe_store.recipe_exists(record.title):
                logger.warning("Recipe already exists: %s", record.title)
                summary.skipped += 1
                return False

            index = self._get_index()
            indexed = index is not None and index.is_available()

            def add_to_index(recipe_id: int) -> None:
                index.add_record(record, language=LANGUAGE)

            # Row and index entry land together: a failed add rolls the row back.
            recipe_store.save_recipe(
                record,
                source=SOURCE_TAG,
                language=LANGUAGE,
                before_commit=add_to_index if indexed else None,
            )

            logger.info("Stored recipe: %s", record.title)
            summary.imported += 1
            return True
        except recipe_store.DuplicateRecipeError:
            logger.warning("Recipe already exists: %s", record.title)
            summary.skipped += 1
            return False
        except Exception as exc:
            logger.error("Failed to import recipe %s: %s", record.title, exc)
            summary.errors += 1
            return False

    def import_file(self, path: str, dry_run: bool = False, limit: Optional[int] = None) -> ImportSummary:
        with correlation_context(kind=RUN_IMPORT):
            logger.info("RECIPE IMPORT STARTING file=%s dry_run=%s limit=%s", path, dry_run, limit or "none")

            report = self.parse_file(path)
            summary = ImportSummary(total=len(report.records))

            if dry_run:
                self.preview(report.records)
                logger.info("Dry run complete. Use --import to save to the database.")
                return summary

            recipe_store.init_db()
            if self.use_index and self._get_index() is None:
                logger.warning("Vector store unavailable - recipes will be stored without embeddings")

            to_import = report.records[:limit] if limit else report.records
            logger.info("Importing %s recipes...", len(to_import))
            for position, record in enumerate(to_import, start=1):
                logger.info("[%s/%s] Importing: %s", position, len(to_import), record.title)
                self.import_record(record, summary)

            log_import_summary(logger, path, summary.to_dict())
            return summary
