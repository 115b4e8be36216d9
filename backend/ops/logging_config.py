"""
Structured logging configuration.

Production writes one JSON object per line to stdout; development uses a
single readable console line per record.

Category commands and the batch sequencer attach context through
`extra={...}`. The JSON formatter lifts the well-known keys (company,
category, action) to top-level fields so log queries can filter on them
directly; anything else lands under "extra".

Environment variables:
- LOG_FORMAT: "json" or "console" (default: json in production)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""
import json
import logging
import os
from datetime import datetime, timezone

# Context keys promoted to top-level JSON fields.
CONTEXT_FIELDS = (
    "company_id",
    "category_action",
    "category_id",
    "category_name",
    "parent_id",
)

APP_LOGGERS = ("accounts", "categories", "ops")

# Everything a bare LogRecord carries; the rest came in through `extra`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def get_logging_config(debug: bool = False) -> dict:
    """
    Build Django's LOGGING dict.

    Args:
        debug: Whether running in debug mode
    """
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")

    if log_format == "json":
        formatter = {"()": "ops.logging_config.JsonFormatter"}
    else:
        formatter = {"format": "[{asctime}] {levelname} {name} {message}", "style": "{"}

    app_logger = {"handlers": ["console"], "level": log_level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "null": {"class": "logging.NullHandler"},
        },
        "loggers": {
            "": {"handlers": ["console"], "level": log_level},
            "django": {**app_logger},
            "django.request": {**app_logger, "level": log_level if debug else "ERROR"},
            # SQL echo only while debugging
            "django.db.backends": {
                "handlers": ["console"] if debug else ["null"],
                "level": "DEBUG" if debug else "INFO",
                "propagate": False,
            },
            **{name: dict(app_logger) for name in APP_LOGGERS},
        },
    }


def _jsonable(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields: timestamp, level, logger, message, then any CONTEXT_FIELDS
    present on the record, then `extra` for the remaining custom keys and
    `exception` when exc_info is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        custom = {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        for key in CONTEXT_FIELDS:
            if key in custom:
                entry[key] = _jsonable(custom.pop(key))
        if custom:
            entry["extra"] = {key: _jsonable(value) for key, value in custom.items()}

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
