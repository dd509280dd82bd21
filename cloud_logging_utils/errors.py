"""
Errors raised by ClientStub when it does not re-raise transport errors as-is.
"""
from __future__ import annotations

from typing import Optional

from googleapiclient.errors import HttpError


class RestError(Exception):
    """A failed REST call, carrying the HTTP status when one is known."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.cause = cause

    @classmethod
    def from_http_error(cls, error: HttpError) -> RestError:
        status = error.resp.status
        reason = error.reason or ""
        return cls(
            f"An error has occurred when making a REST request: {reason or status}",
            status_code=int(status) if status is not None else None,
            reason=reason,
            cause=error,
        )


class DeadlineExceededError(RestError):
    """The call deadline passed; ``root_cause`` is the last retried error."""

    def __init__(
        self,
        message: str,
        root_cause: Optional[BaseException] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, status_code=504, reason="Deadline Exceeded", cause=cause)
        self.root_cause = root_cause
