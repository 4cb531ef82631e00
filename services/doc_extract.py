import logging
import unicodedata
from pathlib import Path
from typing import Any, Dict, List, Tuple

import fitz  # pymupdf

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".pdf", ".txt"}


def _empty_metrics() -> Dict[str, Any]:
    return {"page_count": 0, "text_chars": 0, "pages_with_text": 0}


def _extract_pdf_text(path: Path) -> Tuple[str, Dict[str, Any]]:
    doc = fitz.open(path)
    pages: List[str] = []
    pages_with_text = 0
    try:
        for page in doc:
            page_text = page.get_text("text") or ""
            if page_text.strip():
                pages_with_text += 1
            pages.append(page_text)
        page_count = len(doc)
    finally:
        doc.close()

    text = unicodedata.normalize("NFC", "\n".join(pages))
    return text, {
        "page_count": page_count,
        "text_chars": len(text),
        "pages_with_text": pages_with_text,
    }


def extract_text(path: str) -> Tuple[str, Dict[str, Any]]:
    """Read the text layer of a cookbook file.

    PDFs go through PyMuPDF page by page; scanned PDFs need an OCR pass
    beforehand or yield empty text here. Unsupported formats return "".
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"No such file: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        logger.warning("Unsupported document type %s for %s", suffix or "<none>", file_path)
        return "", _empty_metrics()

    if suffix == ".txt":
        text = unicodedata.normalize("NFC", file_path.read_text(encoding="utf-8", errors="replace"))
        return text, {"page_count": 1, "text_chars": len(text), "pages_with_text": 1 if text.strip() else 0}

    text, metrics = _extract_pdf_text(file_path)
    logger.info(
        "PDF extracted: %s pages, %s characters",
        metrics["page_count"],
        metrics["text_chars"],
    )
    if metrics["page_count"] and not metrics["pages_with_text"]:
        logger.warning("No text layer found in %s; run OCR first (e.g. ocrmypdf).", file_path)
    return text, metrics
