"""
RetryPolicy — exponential back-off bounded by an overall deadline.

Used by PollingHarness to pace polls of long-running operations and by
ClientStub (via CallOptions.retry_policy) to decide whether a failed HTTP
call is retried.

Usage:
    policy = RetryPolicy(initial_delay=0.5, retry_codes=[429, 503], timeout=30)
    policy.start()
    while not done():
        policy.perform_delay()
        if policy.deadline_exceeded():
            break
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """
    Back-off schedule: delays start at ``initial_delay`` seconds and grow by
    ``multiplier`` up to ``max_delay``; no delay extends past the deadline
    of ``timeout`` seconds after start().

    Equality compares the configuration only, not the run state.
    """

    initial_delay: float = 1.0
    max_delay: float = 15.0
    multiplier: float = 1.3
    retry_codes: Sequence[int] = ()
    timeout: Optional[float] = 3600.0

    delay: float = field(default=0.0, init=False, compare=False, repr=False)
    perform_delay_count: int = field(default=0, init=False, compare=False, repr=False)
    _deadline: Optional[float] = field(default=None, init=False, compare=False, repr=False)
    _mock_delay: bool = field(default=False, init=False, compare=False, repr=False)
    _mock_elapsed: float = field(default=0.0, init=False, compare=False, repr=False)
    _started: bool = field(default=False, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.retry_codes = tuple(self.retry_codes)
        self.delay = self.initial_delay

    # ── Run state ─────────────────────────────────────────────────────────────

    def start(self, mock_delay: bool = False) -> None:
        """
        Begin a run: reset the delay and counter and set the deadline.

        With ``mock_delay`` no real sleeping happens; each delay advances a
        virtual clock instead.
        """
        self.delay = self.initial_delay
        self.perform_delay_count = 0
        self._mock_delay = mock_delay
        self._mock_elapsed = 0.0
        self._deadline = None if self.timeout is None else self._now() + self.timeout
        self._started = True

    def ensure_started(self) -> None:
        """Start the run on first use when start() was not called explicitly."""
        if not self._started:
            self.start()

    def _now(self) -> float:
        return time.monotonic() + self._mock_elapsed

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return self._deadline - self._now()

    def deadline_exceeded(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    # ── Decisions ─────────────────────────────────────────────────────────────

    def retry_error(self, error: BaseException) -> bool:
        """True when ``error`` carries an HTTP status listed in retry_codes."""
        if isinstance(error, HttpError):
            status = error.resp.status
        else:
            status = getattr(error, "status_code", None)
        if status is None:
            return False
        try:
            return int(status) in self.retry_codes
        except (TypeError, ValueError):
            return False

    def perform_delay(self) -> None:
        """Wait out the current delay, then grow it for the next attempt."""
        delay = self.delay
        remaining = self.remaining()
        if remaining is not None:
            delay = max(0.0, min(delay, remaining))
        logger.debug("Retry delay %.2fs (attempt %d)", delay, self.perform_delay_count + 1)
        if self._mock_delay:
            self._mock_elapsed += delay
        else:
            time.sleep(delay)
        self.perform_delay_count += 1
        self.delay = min(self.delay * self.multiplier, self.max_delay)

    def __call__(self, error: Optional[BaseException] = None) -> bool:
        """
        Retry hook for ClientStub: returns False when ``error`` is not
        retryable or the deadline has passed, otherwise delays and returns True.
        """
        self.ensure_started()
        if error is not None and not self.retry_error(error):
            return False
        if self.deadline_exceeded():
            return False
        self.perform_delay()
        return True
