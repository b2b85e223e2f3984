"""Process-wide logging setup (console handler, text or JSON lines)."""
from __future__ import annotations

import logging.config

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_logging_config(*, level: str = "INFO", fmt: str = "text") -> dict:
    formatter = "json" if str(fmt).lower() == "json" else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": TEXT_FORMAT},
            "json": {
                "()": JsonFormatter,
                "fmt": JSON_FIELDS,
                "rename_fields": {"levelname": "level", "name": "logger", "asctime": "timestamp"},
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": str(level).upper()},
            # werkzeug logs every request line; keep it quieter than the app
            "werkzeug": {"level": "WARNING"},
            "mysql.connector": {"level": "WARNING"},
        },
    }


def configure_logging(*, level: str = "INFO", fmt: str = "text") -> None:
    logging.config.dictConfig(build_logging_config(level=level, fmt=fmt))
