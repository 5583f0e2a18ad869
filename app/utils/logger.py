"""
Application logger.

JSON lines on Railway (or LOG_FORMAT=json), readable lines locally. The
correlation id of the current request is attached to every record by
CorrelationFilter, so callers never pass it by hand.
"""
import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")

# Keys copied from `extra={...}` into the JSON entry
EXTRA_FIELDS = (
    "method", "path", "status", "duration_ms", "client_ip",
    "error", "error_type", "service", "circuit_state",
    "endpoint", "chars", "pathways", "weeks", "count",
)


class CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = correlation_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.correlation_id:
            entry["correlation_id"] = record.correlation_id
        entry.update({key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)})

        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.filename}:{record.lineno}"
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = {"type": type(exc).__name__, "message": str(exc)}

        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s [%(correlation_id)s] %(message)s", datefmt="%H:%M:%S")


def _json_output() -> bool:
    return bool(os.getenv("RAILWAY_ENVIRONMENT")) or os.getenv("LOG_FORMAT") == "json"


def setup_logger(name: str = "camino_ai", level: Optional[str] = None) -> logging.Logger:
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    log.addFilter(CorrelationFilter())

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(JsonFormatter() if _json_output() else ConsoleFormatter())
    log.addHandler(stdout)

    # Local runs also keep a rotating JSON file under logs/
    if not _json_output() and os.getenv("LOG_TO_FILE", "true").lower() == "true":
        try:
            Path("logs").mkdir(exist_ok=True)
            rotating = RotatingFileHandler(
                Path("logs") / "camino_ai.log", maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            rotating.setFormatter(JsonFormatter())
            log.addHandler(rotating)
        except OSError as e:
            log.warning(f"File logging disabled: {e}")

    return log


logger = setup_logger()
