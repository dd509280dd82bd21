"""
ClientStub — deadline, retry and structured-logging glue around
googleapiclient requests.

The stub does not own a transport: it drives request objects built by a
``googleapiclient`` service (anything with ``execute()``, ``uri``, ``method``,
``body`` and ``headers``), timing each try against the call deadline and
logging every request/response as a structured Message.

Usage:
    service = googleapiclient.discovery.build("tasks", "v1", credentials=creds)
    stub    = ClientStub(service_name="tasks", logger=setup_logger("tasks"))

    options = CallOptions(timeout=30, retry_policy=RetryPolicy(retry_codes=[503]))
    result  = stub.make_request(
        service.tasklists().list(maxResults=10),
        method_name="ListTaskLists",
        options=options,
    )
"""
from __future__ import annotations

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from googleapiclient.errors import HttpError

from .errors import DeadlineExceededError, RestError
from .message import Message
from .retry_policy import RetryPolicy

_module_logger = logging.getLogger(__name__)


def _no_retry(error: BaseException) -> bool:
    return False


@dataclass
class CallOptions:
    """
    Per-call options.

    Args:
        timeout:       Overall deadline in seconds across all tries (None or
                       negative: no deadline).
        retry_policy:  Callable deciding whether an error is retried; a
                       RetryPolicy instance works here.
        metadata:      Extra request headers.
    """

    timeout: Optional[float] = None
    retry_policy: Callable[[BaseException], Any] = _no_retry
    metadata: dict[str, str] = field(default_factory=dict)


class ClientStub:
    """
    Executes googleapiclient requests with deadline-bounded retries.

    Args:
        service_name:       Name used in log entries (e.g. "tasks").
        logger:             Logger for request/response entries; defaults to
                            this module's logger.
        raise_http_errors:  Re-raise HttpError / timeouts unchanged instead of
                            wrapping them in RestError / DeadlineExceededError.
    """

    def __init__(
        self,
        service_name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        raise_http_errors: bool = True,
    ) -> None:
        self.service_name = service_name
        self.logger = logger or _module_logger
        self.raise_http_errors = raise_http_errors

    def make_request(
        self,
        request: Any,
        method_name: Optional[str] = None,
        options: Optional[CallOptions] = None,
    ) -> Any:
        """Execute ``request`` and return its decoded response."""
        options = options or CallOptions()
        deadline = _calculate_deadline(options.timeout)
        request_id = str(uuid.uuid4())
        retried_error: Optional[BaseException] = None
        try_number = 1

        if options.metadata:
            request.headers.update(options.metadata)
        if isinstance(options.retry_policy, RetryPolicy):
            options.retry_policy.start()

        while True:
            if try_number > 1 and not _check_retry(_get_timeout(deadline)):
                raise DeadlineExceededError(
                    "Deadline exceeded before the request could be retried",
                    root_cause=retried_error,
                )
            self._log_request(request, method_name, request_id, try_number)
            try:
                response = request.execute()
            except (TimeoutError, socket.timeout) as e:
                self._log_response(method_name, request_id, try_number, e)
                if self.raise_http_errors:
                    raise
                raise DeadlineExceededError(
                    f"Deadline exceeded: {e}", root_cause=retried_error, cause=e
                ) from e
            except HttpError as e:
                self._log_response(method_name, request_id, try_number, e)
                if _check_retry(_get_timeout(deadline)) and options.retry_policy(e):
                    retried_error = e
                    try_number += 1
                    continue
                if self.raise_http_errors:
                    raise
                raise RestError.from_http_error(e) from e
            self._log_response(method_name, request_id, try_number, response)
            return response

    # ── Logging ───────────────────────────────────────────────────────────────

    def _log_request(self, request: Any, method_name: Optional[str],
                     request_id: str, try_number: int) -> None:
        if not self.logger.isEnabledFor(logging.INFO):
            return
        self.logger.info(Message(
            message=f"Sending request to {self.service_name}.{method_name} (try {try_number})",
            fields={
                "serviceName": self.service_name,
                "rpcName": method_name,
                "retryAttempt": try_number,
                "requestId": request_id,
            },
        ))
        body = getattr(request, "body", None) or ""
        headers = dict(getattr(request, "headers", None) or {})
        if not body and not headers:
            return
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(Message(
                message="(request payload as JSON)",
                fields={"requestId": request_id, "request": _to_str(body), "headers": headers},
            ))

    def _log_response(self, method_name: Optional[str], request_id: str,
                      try_number: int, response: Any) -> None:
        if not self.logger.isEnabledFor(logging.INFO):
            return
        fields: dict[str, Any] = {
            "serviceName": self.service_name,
            "rpcName": method_name,
            "retryAttempt": try_number,
            "requestId": request_id,
        }
        if isinstance(response, BaseException):
            fields["exception"] = str(response)
            text = (f"Received error for {self.service_name}.{method_name} "
                    f"(try {try_number}): {response}")
        else:
            text = f"Received response for {self.service_name}.{method_name} (try {try_number})"
        self.logger.info(Message(message=text, fields=fields))

        if isinstance(response, BaseException) or response is None:
            return
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(Message(
                message="(response payload as JSON)",
                fields={"requestId": request_id, "response": response},
            ))


# ── Deadlines ─────────────────────────────────────────────────────────────────

def _calculate_deadline(timeout: Optional[float]) -> Optional[float]:
    if timeout is None or timeout < 0:
        return None
    return time.monotonic() + timeout


def _get_timeout(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return deadline - time.monotonic()


def _check_retry(timeout: Optional[float]) -> bool:
    return timeout is None or timeout > 0


def _to_str(body: Any) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)
