"""Logging setup for arplan.

Geometry modules log through stdlib ``logging.getLogger(__name__)`` while the
image and CLI layer uses loguru. :func:`setup_logging` installs the loguru
sinks and forwards the ``arplan`` stdlib hierarchy into them, so a run
produces a single stream, text or one JSON object per line.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger


STDLIB_NAMESPACE = "arplan"

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[source]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class JSONFormatter:
    """loguru format callable emitting one JSON object per record."""

    def __call__(self, record: dict[str, Any]) -> str:
        log_data = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "module": record.get("module", ""),
            "function": record.get("function", ""),
            "line": record.get("line", 0),
        }

        exception = record.get("exception")
        if exception:
            log_data["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }

        if record.get("extra"):
            log_data.update(record["extra"])

        # loguru treats the returned string as a format template
        return json.dumps(log_data, ensure_ascii=False, default=str).replace("{", "{{").replace("}", "}}") + "\n"


class LoguruForwardHandler(logging.Handler):
    """Hand stdlib records to loguru, keeping the emitting logger's name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(source=record.name).opt(exception=record.exc_info).log(level, record.getMessage())


def _source_default(record: dict[str, Any]) -> None:
    record["extra"].setdefault("source", record["name"])


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru sinks and route the ``arplan`` stdlib loggers into them.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit one JSON object per line instead of coloured text.
        log_file: Optional path to a rotating log file. If None, logs only to stderr.
    """
    level = level.upper()
    logger.remove()
    logger.configure(patcher=_source_default)

    formatter: Any = JSONFormatter() if json_format else _TEXT_FORMAT
    logger.add(sys.stderr, format=formatter, level=level, colorize=not json_format)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )

    package_logger = logging.getLogger(STDLIB_NAMESPACE)
    for handler in [h for h in package_logger.handlers if isinstance(h, LoguruForwardHandler)]:
        package_logger.removeHandler(handler)
    package_logger.addHandler(LoguruForwardHandler())
    package_logger.setLevel(level)


def get_logger(name: str | None = None) -> Any:
    """loguru logger, bound to ``name`` when given."""
    if name:
        return logger.bind(source=name)
    return logger
