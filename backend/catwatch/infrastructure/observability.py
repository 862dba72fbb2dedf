"""Structured Logging — JSON formatter and setup for moderation audit trails.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Moderation extras (actor_id, target_user_id, operation, error_code,
      iterations, affected_users, path) surfaced when present
    - JSON format in production, human-readable in development
    - setup_logging owns exactly one root handler; calling it again swaps it

Design Decisions:
    - Extras are a fixed allow-list: ban reasons and identifier hashes passed
      as extras by mistake never reach the log sink
    - setup_logging called on startup via lifespan; re-entry (tests, reloads)
      replaces its own handler instead of duplicating every line
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "actor_id", "target_user_id", "operation", "error_code", "iterations",
    "affected_users", "path",
)

_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the application's root handler, replacing a previous one."""
    global _handler
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    if _handler is not None:
        logging.root.removeHandler(_handler)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _handler = handler
    return handler
