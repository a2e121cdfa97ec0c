"""
Project-wide logging setup for action-control.

Provides a simple, consistent stderr logger with optional JSON output.
Controlled via environment variables:
- ACTION_CONTROL_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
- ACTION_CONTROL_LOG_FORMAT: text|json (default: text)
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional


def _get_level() -> int:
    level = os.getenv("ACTION_CONTROL_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level, logging.INFO)


def setup_logging(
    force: bool = False,
    *,
    logger: Optional[logging.Logger] = None,
    level: Optional[int] = None,
) -> None:
    """Configure logging to stderr so reports on stdout stay clean.

    If a handler is already present and force is False, only an explicit
    `level` is applied. An explicit `level` wins over ACTION_CONTROL_LOG_LEVEL.
    """
    target_logger = logger or logging.getLogger()
    if target_logger.handlers and not force:
        if level is not None:
            target_logger.setLevel(level)
        return

    if force:
        for h in list(target_logger.handlers):
            target_logger.removeHandler(h)

    target_logger.setLevel(level if level is not None else _get_level())

    handler = logging.StreamHandler(sys.stderr)

    fmt = os.getenv("ACTION_CONTROL_LOG_FORMAT", "text").lower()
    if fmt == "json":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    handler.setFormatter(formatter)
    target_logger.addHandler(handler)
