"""
Logging setup shared by the API and the seed commands.

The app calls setup_logging on every lifespan start and the seed CLI calls it
too, so the root logger keeps exactly one handler named HANDLER_NAME and each
call only reconfigures it.
"""

import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "storefront"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Passed through `extra=` by auth, rules and the error handlers
CONTEXT_FIELDS = ("error_code", "path", "admin_email", "collection")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with whatever context fields it carries."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _app_handler() -> logging.Handler:
    for handler in logging.root.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    logging.root.addHandler(handler)
    return handler


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    handler = _app_handler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
