"""
SourceLocation — the (file, line, function) triple of a log call site.

Rendered by StructuredFormatter as ``logging.googleapis.com/sourceLocation``.

Usage:
    loc = SourceLocation(file="/app/main.py", line=42, function="handle")
    loc.line          # "42" (always stored as text)

    # Capture the location of whoever called the current function:
    loc = SourceLocation.for_caller(extra_depth=1)
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class SourceLocation:
    """Immutable call-site location. Equality and hashing are structural."""

    file: Optional[str] = None
    line: Optional[str] = None
    function: Optional[str] = None

    def __post_init__(self) -> None:
        if self.line is not None and not isinstance(self.line, str):
            object.__setattr__(self, "line", str(self.line))

    def to_dict(self) -> dict[str, Optional[str]]:
        """Mapping form; always carries all three keys."""
        return {"file": self.file, "line": self.line, "function": self.function}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceLocation:
        return cls(
            file=data.get("file"),
            line=data.get("line"),
            function=data.get("function"),
        )

    @classmethod
    def for_caller(
        cls,
        extra_depth: int = 0,
        omit_files: Optional[Iterable[str]] = None,
    ) -> SourceLocation:
        """
        Return the location of the code that called ``for_caller``.

        Args:
            extra_depth:  Additional frames to walk past the immediate caller.
            omit_files:   Paths of internal modules whose frames are skipped
                          after ``extra_depth`` has been applied.

        Interpreters without frame support yield a location of all ``None``.
        """
        omitted = set(omit_files or ())
        frame = inspect.currentframe()
        try:
            if frame is not None:
                frame = frame.f_back
            for _ in range(extra_depth):
                if frame is None:
                    break
                frame = frame.f_back
            while frame is not None and frame.f_code.co_filename in omitted:
                frame = frame.f_back
            if frame is None:
                return cls()
            return cls(
                file=frame.f_code.co_filename,
                line=frame.f_lineno,
                function=frame.f_code.co_name,
            )
        finally:
            # Break the reference cycle through the frame objects
            del frame
