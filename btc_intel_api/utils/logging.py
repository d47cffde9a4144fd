"""Logging configuration for the Bitcoin Intel API."""

import logging
import os
import sys
from typing import TextIO

import structlog
from structlog.stdlib import LoggerFactory

# Libraries whose per-request logs duplicate the fetcher's own upstream logging
QUIET_LOGGERS = ("httpx", "httpcore")


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _has_file_handler(log_file: str) -> bool:
    path = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == path
        for handler in logging.getLogger().handlers
    )


def setup_logging(settings, stream: TextIO = None) -> None:
    """
    Setup structured logging for the application.

    Args:
        settings: Object with ``log_level``, ``log_format`` and ``log_file``
        stream: Console stream, stdout by default; the CLI logs to stderr so
            query output stays machine-readable
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(settings.log_format),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=level,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if settings.log_file and not _has_file_handler(settings.log_file):
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter('%(message)s') if settings.log_format == "json"
            else logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        logging.getLogger().addHandler(file_handler)
