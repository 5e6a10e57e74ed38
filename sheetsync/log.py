"""Logging setup.

loguru is the only sink.  Records from stdlib loggers (uvicorn, httpx,
sqlalchemy, botocore) are re-emitted through loguru, so the CLI, the editor
and the content service all write one format to stderr.
"""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <7}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Third-party loggers that are chatty below WARNING.
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "botocore", "boto3", "sqlalchemy.engine")


class _StdlibBridge(logging.Handler):
    """Forward stdlib ``logging`` records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, json_logs: bool = False) -> None:
    """Route all logging through a single loguru sink.

    *json_logs* switches the sink to loguru's serialized (one JSON object per
    line) output, for running the content service under a log collector.
    Safe to call more than once; each call replaces the previous sink.
    """
    level = level.upper()

    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=TEXT_FORMAT)

    logging.basicConfig(handlers=[_StdlibBridge()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging configured (level={}, json={})", level, json_logs)
