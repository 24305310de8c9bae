"""Logging configuration using loguru.

``sheetwatch run`` in production writes one JSON object per line to stdout
(Google Cloud Logging format). Elsewhere logs go to stderr as colored text.
Context bound with ``logger.bind`` (``sheet``, ``reference``) is kept in
both: as Cloud Logging labels in JSON, and as a tag in the console line.
"""

import json
import logging
import sys
import traceback
from typing import Any

from loguru import logger

SEVERITY_MAP = {
    "TRACE": "DEBUG",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}

LABELS_KEY = "logging.googleapis.com/labels"
SOURCE_LOCATION_KEY = "logging.googleapis.com/sourceLocation"

# Libraries whose stdlib loggers are routed through loguru.
INTERCEPTED_LOGGERS = ("httpx", "httpcore", "google.auth")


def serialize_record(record: dict[str, Any]) -> str:
    """Serialize a loguru record to a Cloud Logging JSON line.

    Bound fields become string-valued labels, so entries can be filtered
    by sheet name in the log viewer. Sheet names are written unescaped.
    """
    entry: dict[str, Any] = {
        "severity": SEVERITY_MAP.get(record["level"].name, "INFO"),
        "message": record["message"],
        "time": record["time"].isoformat(),
        "component": record["name"],
    }

    labels = {
        key: str(value)
        for key, value in record["extra"].items()
        if not key.startswith("_")
    }
    if labels:
        entry[LABELS_KEY] = labels

    if record["level"].no >= logger.level("ERROR").no:
        entry[SOURCE_LOCATION_KEY] = {
            "file": record["file"].path,
            "line": str(record["line"]),
            "function": record["function"],
        }

    exception = record["exception"]
    if exception is not None and exception.type is not None:
        entry["exception"] = {
            "type": exception.type.__name__,
            "value": str(exception.value),
            "traceback": "".join(
                traceback.format_exception(
                    exception.type, exception.value, exception.traceback
                )
            ),
        }

    return json.dumps(entry, default=str, ensure_ascii=False)


def _json_sink(message: Any) -> None:
    sys.stdout.write(serialize_record(message.record) + "\n")
    sys.stdout.flush()


def _console_format(record: dict[str, Any]) -> str:
    """Console format; adds a sheet tag when one is bound."""
    sheet = " <magenta>[{extra[sheet]}]</magenta>" if "sheet" in record["extra"] else ""
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan>" + sheet + " | "
        "<level>{message}</level>\n{exception}"
    )


def configure_logging(*, is_production: bool, log_level: str = "INFO") -> None:
    """Configure loguru for the CLI.

    Args:
        is_production: Emit Cloud Logging JSON on stdout instead of colored
            text on stderr.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logger.remove()

    if is_production:
        logger.add(_json_sink, level=log_level, format="{message}", diagnose=False)
    else:
        logger.add(sys.stderr, level=log_level, format=_console_format, colorize=True)

    _intercept_standard_logging(log_level)


class InterceptHandler(logging.Handler):
    """Route standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _intercept_standard_logging(log_level: str) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=log_level, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).setLevel(log_level)
        logging.getLogger(name).handlers = [InterceptHandler()]
