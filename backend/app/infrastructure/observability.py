"""Structured Logging — JSON lines in production, readable text in development.

Invariants:
    - Every record carries timestamp, level, logger and message
    - Known `extra` keys (game ids, error codes, sweep counters) are copied into the output
    - setup_logging() is idempotent: calling it twice does not duplicate handlers

Design Decisions:
    - Audit events are NOT logs: they go to the audit_logs table (infrastructure/audit_log.py)
    - SQLAlchemy engine and uvicorn access logs capped at WARNING unless LOG_LEVEL=DEBUG
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "game_id", "meme_id", "image_id", "user_id", "error_code", "path",
    "action", "blob_key", "deleted_games", "deleted_blobs", "missing_blobs",
    "deleted_count", "checked", "file_count", "total_bytes", "duration_ms",
)

_NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")
_HANDLER_NAME = "memevault"


def collect_extras(record: logging.LogRecord) -> dict:
    extras = {}
    for key in EXTRA_FIELDS:
        value = getattr(record, key, None)
        if value is None:
            continue
        extras[key] = value if isinstance(value, (int, float, bool)) else str(value)
    return extras


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **collect_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable lines with the extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = collect_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger once per process (called from the lifespan)."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    resolved = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(resolved)
    if resolved > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
