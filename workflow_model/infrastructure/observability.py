"""Structured Logging — JSON or text log lines for the resolver and its adapters.

Invariants:
    - Every JSON line carries timestamp, level, logger and message
    - Resolver context passed via `extra=` (entity_type, instance_id, action, ...) is
      lifted to top-level keys; anything else in `extra` is ignored
    - setup_logging is idempotent: calling it twice never duplicates output

Design Decisions:
    - Called once from the FastAPI lifespan; tests rely on pytest's caplog instead
    - httpx and SQLAlchemy engine chatter capped at WARNING unless level is DEBUG
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "entity_type", "instance_id", "action", "error_code", "path", "task_id",
)
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update({
            key: record.__dict__[key]
            for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            payload["exc_type"] = record.exc_info[0].__name__
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _WorkflowModelHandler(logging.StreamHandler):
    """Marker type so setup_logging can find and replace its own handler."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _WorkflowModelHandler)]:
        root.removeHandler(existing)

    handler = _WorkflowModelHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    resolved = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(resolved)
    if resolved > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return handler
