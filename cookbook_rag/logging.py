from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any

from cookbook_rag.config import get_log_path, load_config

# Run ID shared by every log line of one import run or context lookup, e.g. "import-3f2a9c1d0b7e"
_run_id: ContextVar[str] = ContextVar("run_id", default="")

# Third-party loggers that flood INFO during model and collection setup
NOISY_LOGGERS = ("chromadb", "sentence_transformers", "httpx", "urllib3")

RUN_IMPORT = "import"
RUN_CONTEXT = "context"

# Optional per-record attributes copied into JSON lines when a caller passes them via ``extra``
RECORD_FIELDS = ("recipe", "dish", "source_file")


def _new_run_id(kind: str) -> str:
    return f"{kind}-{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> str:
    """Current run ID; outside a run, one is generated for ad-hoc logging."""
    cid = _run_id.get()
    if not cid:
        cid = _new_run_id("adhoc")
        _run_id.set(cid)
    return cid


@contextmanager
def correlation_context(cid: str | None = None, kind: str = RUN_IMPORT) -> Generator[str, None, None]:
    """Tag every log line of an import run or a context lookup with one run ID."""
    previous = _run_id.get()
    current = cid or _new_run_id(kind)
    _run_id.set(current)
    try:
        yield current
    finally:
        _run_id.set(previous)


class CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """JSON lines; Vietnamese dish names are written unescaped."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "correlation_id", "-"),
            "message": record.getMessage(),
        }
        for field in RECORD_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_data"):
            log_entry["data"] = record.extra_data
        return json.dumps(log_entry, ensure_ascii=False)


def configure_logging(config: dict[str, Any] | None = None) -> None:
    cfg = config or load_config()
    log_cfg = cfg.get("logging", {}) if isinstance(cfg.get("logging", {}), dict) else {}
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Model download and collection setup chatter stays at WARNING even under DEBUG.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        # The CLI may be invoked repeatedly in one process (tests).
        return

    if log_cfg.get("json_format", False):
        fmt: logging.Formatter = StructuredFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s")

    log_path = get_log_path(cfg)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    run_filter = CorrelationFilter()
    for handler in (
        logging.StreamHandler(),
        RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"),
    ):
        handler.setFormatter(fmt)
        handler.addFilter(run_filter)
        root.addHandler(handler)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log ``message key=value ...``; the values also land in the JSON ``data`` field."""
    if extra:
        details = " ".join(f"{key}={value}" for key, value in extra.items())
        message = f"{message} {details}"
    logger.log(level, message, extra={"extra_data": extra})


def log_import_summary(logger: logging.Logger, source_file: str, counts: dict[str, int]) -> None:
    """Final line of an import run. Logged as a warning when any recipe failed."""
    level = logging.WARNING if counts.get("errors") else logging.INFO
    logger.log(
        level,
        "IMPORT SUMMARY %s",
        " ".join(f"{key}={value}" for key, value in counts.items()),
        extra={"extra_data": dict(counts), "source_file": source_file},
    )
