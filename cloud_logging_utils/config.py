"""
Logging configuration loaded from the environment and an optional .env file.

Recognized variables:
    GOOGLE_LOGGING_LEVEL         level name (DEBUG, INFO, ...) or number
    GOOGLE_LOGGING_PROGNAME      program name written on every line
    GOOGLE_LOGGING_FILE          path of a rotating log file (optional)
    GOOGLE_LOGGING_MAX_BYTES     rotate the file after this many bytes
    GOOGLE_LOGGING_BACKUP_COUNT  number of rotated files to keep

Process environment variables take precedence over the .env file.

Usage:
    settings = LoggingSettings.from_env()
    settings = LoggingSettings.from_env(env_file="~/app/.env")
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import dotenv_values, find_dotenv

ENV_PREFIX = "GOOGLE_LOGGING_"


@dataclass(frozen=True)
class LoggingSettings:
    """Settings consumed by setup_logger()."""

    level: int = logging.INFO
    progname: Optional[str] = None
    log_file: Optional[Path] = None
    max_bytes: int = 2_000_000   # 2 MB per file
    backup_count: int = 5

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> LoggingSettings:
        """
        Build settings from ``environ`` (default: os.environ) layered over a
        .env file.

        Args:
            env_file:  Path of the .env file. When omitted, the nearest .env
                       above the working directory is used, if any.
            environ:   Mapping that overrides values from the file.
        """
        if env_file is None:
            env_file = find_dotenv(usecwd=True) or None
        else:
            env_file = Path(env_file).expanduser()

        values: dict[str, Optional[str]] = {}
        if env_file:
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        def get(name: str) -> Optional[str]:
            value = values.get(ENV_PREFIX + name)
            return value if value else None

        defaults = cls()
        log_file = get("FILE")
        return cls(
            level=_parse_level(get("LEVEL"), defaults.level),
            progname=get("PROGNAME"),
            log_file=Path(log_file).expanduser() if log_file else None,
            max_bytes=_parse_int("MAX_BYTES", get("MAX_BYTES"), defaults.max_bytes),
            backup_count=_parse_int("BACKUP_COUNT", get("BACKUP_COUNT"), defaults.backup_count),
        )


def _parse_level(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    if not isinstance(level, int):
        raise ValueError(f"{ENV_PREFIX}LEVEL: unknown logging level {raw!r}")
    return level


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name}: expected an integer, got {raw!r}") from None
