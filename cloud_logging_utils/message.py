"""
Message — immutable structured log payload.

A Message carries free text and/or a map of structured fields, plus optional
Cloud Logging envelope metadata (timestamp, trace, span, labels, source
location, insert id). Values are normalized into JSON-safe shapes at
construction time, so a Message can be shared freely between threads.

Usage:
    msg = Message(message="hello", fields={"user": "ada", "attempt": 2})
    msg.message          # "hello"
    msg.full_message     # 'hello -- {"user":"ada","attempt":2}'

    # Coerce whatever a caller passed to logger.info(...)
    Message.from_value("plain text")
    Message.from_value({"message": "done", "rows": 12, "trace": "projects/p/traces/t"})
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .source_location import SourceLocation

# Sentinels accepted by the timestamp / source_location options
NOW = "now"
CALLER = "caller"

# Top-level keys of a Cloud Logging structured entry that fields may not shadow
DISALLOWED_FIELD_KEYS: frozenset[str] = frozenset({
    "severity",
    "message",
    "log",
    "httpRequest",
    "timestamp",
    "logging.googleapis.com/insertId",
})

# Keyword options recognized by Message.from_value when given a mapping
MESSAGE_OPTIONS: tuple[str, ...] = (
    "message",
    "fields",
    "timestamp",
    "source_location",
    "insert_id",
    "trace",
    "span_id",
    "trace_sampled",
    "labels",
)

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


class InvalidFieldKeyError(ValueError):
    """Raised when a field key collides with a reserved envelope key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Field key not allowed: {key}")
        self.key = key


def to_compact_json(value: Any) -> str:
    """Serialize without whitespace; non-JSON scalars fall back to str()."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


class Message:
    """
    Structured log entry payload.

    Two messages are equal when their ``text`` and ``fields`` are equal; the
    envelope metadata (timestamp, trace ids, labels, ...) is not compared.
    """

    __slots__ = (
        "_text",
        "_fields",
        "_timestamp",
        "_source_location",
        "_insert_id",
        "_trace",
        "_span_id",
        "_trace_sampled",
        "_labels",
    )

    def __init__(
        self,
        message: Any = None,
        fields: Optional[Mapping] = None,
        timestamp: Any = None,
        source_location: Any = None,
        insert_id: Any = None,
        trace: Any = None,
        span_id: Any = None,
        trace_sampled: Any = None,
        labels: Optional[Mapping] = None,
    ) -> None:
        """
        Args:
            message:          Free text (any value; stringified).
            fields:           Structured fields. Keys are stringified and must
                              not be one of DISALLOWED_FIELD_KEYS.
            timestamp:        datetime, epoch seconds, or NOW.
            source_location:  SourceLocation, a mapping with file/line/function,
                              or CALLER to capture the calling code.
            insert_id:        Cloud Logging insert id.
            trace:            Trace resource name.
            span_id:          Span id within the trace.
            trace_sampled:    Whether the trace was sampled (truthiness).
            labels:           Label map; values are flattened to strings.
        """
        self._text = None if message is None else _to_text(message)
        self._fields = _interpret_fields(fields)
        self._timestamp = _interpret_timestamp(timestamp)
        self._source_location = _interpret_source_location(source_location)
        self._insert_id = None if insert_id is None else _to_text(insert_id)
        self._trace = None if trace is None else _to_text(trace)
        self._span_id = None if span_id is None else _to_text(span_id)
        self._trace_sampled = None if trace_sampled is None else bool(trace_sampled)
        self._labels = _interpret_labels(labels)

    # ── Coercion ──────────────────────────────────────────────────────────────

    @classmethod
    def from_value(cls, value: Any) -> Message:
        """
        Coerce a log payload into a Message.

        - A Message is returned unchanged (same instance).
        - A mapping supplies Message options by key; every other key is
          merged into ``fields``, overriding entries of the ``fields`` option.
        - Anything else becomes the message text.
        """
        if isinstance(value, Message):
            return value
        if isinstance(value, Mapping):
            options: dict[str, Any] = {}
            extra: dict[str, Any] = {}
            for key, item in value.items():
                if key in MESSAGE_OPTIONS:
                    options[key] = item
                else:
                    extra[key] = item
            base_fields = options.pop("fields", None) or {}
            if base_fields or extra:
                merged = {_to_key(k): v for k, v in base_fields.items()}
                merged.update((_to_key(k), v) for k, v in extra.items())
                options["fields"] = merged
            return cls(**options)
        return cls(message="" if value is None else value)

    # ── Payload ───────────────────────────────────────────────────────────────

    @property
    def text(self) -> Optional[str]:
        return self._text

    @property
    def fields(self) -> Optional[dict[str, Any]]:
        return self._fields

    @property
    def message(self) -> Optional[str]:
        """The text if present, else the fields as compact JSON, else None."""
        if self._text is not None:
            return self._text
        if self._fields is not None:
            return to_compact_json(self._fields)
        return None

    @property
    def full_message(self) -> Optional[str]:
        """Text and fields together, joined by `` -- ``."""
        if self._text is not None and self._fields is not None:
            return f"{self._text} -- {to_compact_json(self._fields)}"
        return self.message

    # ── Envelope metadata ─────────────────────────────────────────────────────

    @property
    def timestamp(self) -> Optional[datetime]:
        return self._timestamp

    @property
    def source_location(self) -> Optional[SourceLocation]:
        return self._source_location

    @property
    def insert_id(self) -> Optional[str]:
        return self._insert_id

    @property
    def trace(self) -> Optional[str]:
        return self._trace

    @property
    def span_id(self) -> Optional[str]:
        return self._span_id

    @property
    def trace_sampled(self) -> Optional[bool]:
        return self._trace_sampled

    @property
    def is_trace_sampled(self) -> Optional[bool]:
        return self._trace_sampled

    @property
    def labels(self) -> Optional[dict[str, str]]:
        return self._labels

    # ── Value semantics ───────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._text == other._text and self._fields == other._fields

    def __hash__(self) -> int:
        return hash((self._text, _hash_key(self._fields)))

    def __str__(self) -> str:
        return self.message or ""

    def __repr__(self) -> str:
        return f"Message({self.full_message!r})"


# ── Normalization ─────────────────────────────────────────────────────────────

def _to_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _to_key(key: Any) -> str:
    return key if isinstance(key, str) else _to_text(key)


def _hash_key(value: Any) -> Any:
    """Order-insensitive hashable form of a normalized value, consistent with ==."""
    if isinstance(value, Mapping):
        return frozenset((k, _hash_key(v)) for k, v in value.items())
    if isinstance(value, _SEQUENCE_TYPES):
        return tuple(_hash_key(v) for v in value)
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value


def normalize_field_value(value: Any) -> Any:
    """Recursively convert a field value into JSON-safe containers and scalars."""
    if isinstance(value, Enum):
        return _to_text(value)
    if isinstance(value, Mapping):
        return {_to_key(k): normalize_field_value(v) for k, v in value.items()}
    if isinstance(value, _SEQUENCE_TYPES):
        return [normalize_field_value(v) for v in value]
    return value


def normalize_label_value(value: Any) -> str:
    """Flatten a label value to a string; containers become compact JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, *_SEQUENCE_TYPES)):
        return to_compact_json(normalize_field_value(value))
    return _to_text(value)


def _interpret_fields(fields: Optional[Mapping]) -> Optional[dict[str, Any]]:
    if fields is None:
        return None
    for key in fields:
        if _to_key(key) in DISALLOWED_FIELD_KEYS:
            raise InvalidFieldKeyError(_to_key(key))
    return normalize_field_value(fields)


def _interpret_labels(labels: Optional[Mapping]) -> Optional[dict[str, str]]:
    if labels is None:
        return None
    return {_to_key(k): normalize_label_value(v) for k, v in labels.items()}


def _interpret_timestamp(timestamp: Any) -> Optional[datetime]:
    if timestamp is None or isinstance(timestamp, datetime):
        return timestamp
    if timestamp == NOW:
        return datetime.now(timezone.utc)
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    raise TypeError(f"Unsupported timestamp: {timestamp!r}")


def _interpret_source_location(source_location: Any) -> Optional[SourceLocation]:
    if source_location is None or isinstance(source_location, SourceLocation):
        return source_location
    if source_location == CALLER:
        return SourceLocation.for_caller(omit_files=[_MODULE_FILE])
    if isinstance(source_location, Mapping):
        return SourceLocation.from_dict(
            {_to_key(k): v for k, v in source_location.items()}
        )
    raise TypeError(f"Unsupported source location: {source_location!r}")


# Frames from this module are skipped when capturing the caller's location
_MODULE_FILE = _interpret_source_location.__code__.co_filename
