import json
import logging

from cookbook_rag.logging import (
    RUN_CONTEXT,
    CorrelationFilter,
    StructuredFormatter,
    correlation_context,
    get_correlation_id,
    log_import_summary,
    log_with_context,
)


def _record(message="Imported recipe", **attrs):
    record = logging.LogRecord("services.importer", logging.INFO, __file__, 1, message, (), None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_correlation_context_restores_previous_id():
    outer = get_correlation_id()
    with correlation_context("import-run") as cid:
        assert cid == "import-run"
        assert get_correlation_id() == "import-run"
    assert get_correlation_id() == outer


def test_filter_stamps_correlation_id():
    record = _record()
    with correlation_context("abc123"):
        assert CorrelationFilter().filter(record)
    assert record.correlation_id == "abc123"


def test_structured_formatter_keeps_vietnamese_text():
    record = _record("Đã lưu: Phở bò", correlation_id="abc123", extra_data={"imported": 1})
    payload = json.loads(StructuredFormatter().format(record))

    assert payload["message"] == "Đã lưu: Phở bò"
    assert payload["run_id"] == "abc123"
    assert payload["data"] == {"imported": 1}
    assert "Phở" in StructuredFormatter().format(record)


def test_log_with_context_appends_details(caplog):
    logger = logging.getLogger("tests.import")
    with caplog.at_level(logging.INFO, logger="tests.import"):
        log_with_context(logger, logging.INFO, "IMPORT SUMMARY", imported=2, skipped=1)

    record = caplog.records[-1]
    assert record.getMessage() == "IMPORT SUMMARY imported=2 skipped=1"
    assert record.extra_data == {"imported": 2, "skipped": 1}


def test_generated_run_ids_carry_kind():
    with correlation_context(kind=RUN_CONTEXT) as cid:
        assert cid.startswith("context-")
    with correlation_context() as cid:
        assert cid.startswith("import-")


def test_structured_formatter_copies_recipe_fields():
    record = _record("Stored recipe", correlation_id="-", recipe="Phở bò", source_file="book.pdf")
    payload = json.loads(StructuredFormatter().format(record))
    assert payload["recipe"] == "Phở bò"
    assert payload["source_file"] == "book.pdf"
    assert "dish" not in payload


def test_import_summary_level(caplog):
    logger = logging.getLogger("tests.import")
    with caplog.at_level(logging.INFO, logger="tests.import"):
        log_import_summary(logger, "book.pdf", {"imported": 3, "skipped": 0, "errors": 0, "total": 3})
        log_import_summary(logger, "book.pdf", {"imported": 2, "skipped": 0, "errors": 1, "total": 3})

    clean, failed = caplog.records[-2:]
    assert clean.levelno == logging.INFO
    assert clean.getMessage() == "IMPORT SUMMARY imported=3 skipped=0 errors=0 total=3"
    assert failed.levelno == logging.WARNING
    assert failed.source_file == "book.pdf"
