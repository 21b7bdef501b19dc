"""Logging configuration.

Two output modes, selected by the LOG_FORMAT setting:
- "json": one JSON object per line, for log shippers
- "text": human-readable lines for local development
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class HttpxNoiseFilter(logging.Filter):
    """Drop httpx's per-request INFO lines; failures are logged by the fetcher."""

    def filter(self, record):
        if record.name.startswith(("httpx", "httpcore")):
            return record.levelno >= logging.WARNING
        return True


def configure_logging(log_format: str = "text", log_level: str = "INFO"):
    """Configure the root logger.

    Args:
        log_format: "json" or "text"
        log_level: Python log level name
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(HttpxNoiseFilter())

    if log_format == "json":
        formatter = JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
                "asctime": "timestamp",
            },
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
