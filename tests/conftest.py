"""
Shared fixtures: an in-memory structured logger, HttpError factory and a fake
googleapiclient request.
"""
import io
import json
import logging
from types import SimpleNamespace

import pytest
from googleapiclient.errors import HttpError

from cloud_logging_utils.structured_formatter import StructuredFormatter


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def formatter():
    return StructuredFormatter(progname="tron")


@pytest.fixture
def structured_logger(request, stream, formatter):
    """A DEBUG-level logger writing StructuredFormatter lines to ``stream``."""
    logger = logging.getLogger(f"tests.{request.node.name}")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    logger.removeHandler(handler)


@pytest.fixture
def log_entries(stream):
    """Callable returning the JSON entries written so far."""
    def read():
        return [json.loads(line) for line in stream.getvalue().splitlines()]
    return read


@pytest.fixture
def make_http_error():
    def make(status, reason="error"):
        return HttpError(SimpleNamespace(status=status, reason=reason), b"")
    return make


class FakeRequest:
    """Stands in for googleapiclient.http.HttpRequest."""

    def __init__(self, outcomes, body=None):
        self.uri = "https://tasks.googleapis.com/tasks/v1/users/@me/lists"
        self.method = "GET"
        self.body = body
        self.headers = {}
        self.calls = 0
        self._outcomes = list(outcomes)

    def execute(self):
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_request():
    return FakeRequest
