"""
setup_logger — attach StructuredFormatter handlers to a named logger.

Writes JSON lines to:
  - stdout (always)
  - a rotating file, when LoggingSettings.log_file is set

Usage:
    logger = setup_logger("myapp", LoggingSettings.from_env())
    logger.info({"message": "started", "version": "1.2.0"})
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import LoggingSettings
from .structured_formatter import StructuredFormatter


def setup_logger(name: str, settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """Configure ``name`` for structured output and return it."""
    settings = settings or LoggingSettings()

    logger = logging.getLogger(name)
    logger.setLevel(settings.level)

    # Avoid adding duplicate handlers if setup runs twice
    if logger.handlers:
        return logger

    fmt = StructuredFormatter(progname=settings.progname)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(fmt)
    logger.addHandler(stream_handler)

    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    return logger
