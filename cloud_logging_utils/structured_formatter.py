"""
StructuredFormatter — one Cloud Logging JSON line per log call.

Works as a regular ``logging.Formatter`` (attach it to any handler) and also
exposes ``format_entry()`` for backends that hand over a
(severity, timestamp, progname, payload) tuple directly.

Usage:
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(progname="myprog"))
    logger.addHandler(handler)

    logger.info("hello")                                   # plain text
    logger.info({"message": "saved", "rows": 12})          # fields
    logger.info(Message(message="hi", trace_sampled=True))  # pre-built payload
    logger.info("hi", extra={"labels": {"env": "prod"}})   # envelope via extra

Example output (one line):
    {"severity":"INFO","timestamp":{"seconds":123456789,"nanos":654321000},
     "logging.googleapis.com/insertId":"12345","progname":"myprog","message":"hello"}
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Tuple, Union

from .message import CALLER, Message, to_compact_json
from .source_location import SourceLocation

_LOGGING_PREFIX = "logging.googleapis.com/"

# Standard logging levels and common level names → Cloud Logging severities
_SEVERITY_MAP: dict[Union[int, str], str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARN": "WARNING",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "FATAL": "CRITICAL",
    "CRITICAL": "CRITICAL",
}

# Message options that may be supplied through logger.log(..., extra={...})
_RECORD_OPTIONS: tuple[str, ...] = (
    "fields",
    "timestamp",
    "source_location",
    "insert_id",
    "trace",
    "span_id",
    "trace_sampled",
    "labels",
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def map_severity(severity: Any) -> str:
    """Map a backend severity token to a Cloud Logging severity name."""
    if isinstance(severity, str):
        severity = severity.upper()
    try:
        return _SEVERITY_MAP.get(severity, "DEFAULT")
    except TypeError:  # unhashable token
        return "DEFAULT"


Timestamp = Union[datetime, float, int, Tuple[int, int]]


def timestamp_parts(timestamp: Timestamp) -> dict[str, int]:
    """
    Split a timestamp into whole seconds and nanoseconds.

    Accepts a datetime, epoch seconds (int or float), or a (seconds, nanos)
    pair for callers that need full nanosecond precision.
    """
    if isinstance(timestamp, tuple):
        seconds, nanos = timestamp
        extra_seconds, nanos = divmod(int(nanos), 1_000_000_000)
        return {"seconds": int(seconds) + extra_seconds, "nanos": nanos}
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            # Naive values are local time, as with datetime.timestamp()
            timestamp = timestamp.astimezone()
        delta = timestamp - _EPOCH
        return {
            "seconds": delta.days * 86_400 + delta.seconds,
            "nanos": delta.microseconds * 1_000,
        }
    seconds, fraction = divmod(timestamp, 1)
    nanos = int(round(fraction * 1_000_000_000))
    if nanos >= 1_000_000_000:
        seconds += 1
        nanos -= 1_000_000_000
    return {"seconds": int(seconds), "nanos": nanos}


class StructuredFormatter(logging.Formatter):
    """
    Formats log calls as Cloud Logging structured entries.

    The formatter keeps no per-call state; one instance can serve any number
    of handlers and threads.
    """

    def __init__(self, progname: Optional[str] = None) -> None:
        """
        Args:
            progname:  Program name emitted on every line. When unset, records
                       formatted through ``format()`` use their logger name.
        """
        super().__init__()
        self.progname = progname

    # ── Backend-agnostic entry point ──────────────────────────────────────────

    def format_entry(
        self,
        severity: Any,
        timestamp: Timestamp,
        progname: Optional[str],
        payload: Any,
    ) -> str:
        """Return one newline-terminated JSON line for a single log call."""
        message = Message.from_value(payload)
        entry = self.build_entry(severity, timestamp, progname, message)
        return to_compact_json(entry) + "\n"

    def build_entry(
        self,
        severity: Any,
        timestamp: Timestamp,
        progname: Optional[str],
        message: Message,
    ) -> dict[str, Any]:
        """Assemble the entry mapping in Cloud Logging key order."""
        entry: dict[str, Any] = {
            "severity": map_severity(severity),
            "timestamp": timestamp_parts(message.timestamp or timestamp),
        }
        if message.source_location is not None:
            entry[_LOGGING_PREFIX + "sourceLocation"] = message.source_location.to_dict()
        if message.insert_id is not None:
            entry[_LOGGING_PREFIX + "insertId"] = message.insert_id
        if message.span_id is not None:
            entry[_LOGGING_PREFIX + "spanId"] = message.span_id
        if message.trace is not None:
            entry[_LOGGING_PREFIX + "trace"] = message.trace
        if message.trace_sampled is not None:
            entry[_LOGGING_PREFIX + "traceSampled"] = message.trace_sampled
        if message.labels is not None:
            entry[_LOGGING_PREFIX + "labels"] = message.labels
        if message.fields:
            entry.update(message.fields)
        if progname:
            entry["progname"] = progname
        entry["message"] = message.message or ""
        return entry

    # ── logging.Formatter integration ─────────────────────────────────────────

    def format(self, record: logging.LogRecord) -> str:
        """Format a LogRecord; the handler appends the line terminator."""
        message = self._record_message(record)
        entry = self.build_entry(
            record.levelno,
            record.created,
            self.progname or record.name,
            message,
        )
        details = self._record_details(record)
        if details:
            entry["message"] = f"{entry['message']}\n{details}" if entry["message"] else details
        return to_compact_json(entry)

    def _record_message(self, record: logging.LogRecord) -> Message:
        if isinstance(record.msg, Message):
            return record.msg
        options = {
            name: getattr(record, name)
            for name in _RECORD_OPTIONS
            if hasattr(record, name)
        }
        if options.get("source_location") == CALLER:
            # logging already captured the call site
            options["source_location"] = SourceLocation(
                file=record.pathname, line=record.lineno, function=record.funcName
            )
        if isinstance(record.msg, Mapping) and not record.args:
            return Message.from_value({**record.msg, **options})
        if not options:
            return Message.from_value(record.getMessage())
        return Message.from_value({"message": record.getMessage(), **options})

    def _record_details(self, record: logging.LogRecord) -> str:
        """Traceback and stack text attached to the record, if any."""
        parts = []
        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            parts.append(record.exc_text)
        if record.stack_info:
            parts.append(self.formatStack(record.stack_info))
        return "\n".join(parts)
