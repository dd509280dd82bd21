"""
PollingHarness — poll a callback until it produces a result or time runs out.

Usage:
    harness = PollingHarness(initial_delay=2, retry_codes=[503], timeout=300)
    operation = harness.wait(lambda: ops_client.get(name).execute().get("response"))
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class PollingHarness:
    """Repeatedly calls a callback, pacing attempts with a RetryPolicy."""

    def __init__(self, retry_policy: Optional[RetryPolicy] = None, **retry_options: Any) -> None:
        self.retry_policy: RetryPolicy = retry_policy or RetryPolicy(**retry_options)

    def wait(
        self,
        callback: Callable[[], Any],
        wait_sentinel: Any = None,
        timeout_result: Any = None,
        mock_delay: bool = False,
    ) -> Any:
        """
        Poll ``callback`` until it returns something other than ``wait_sentinel``.

        Args:
            callback:        Zero-argument callable performing one poll.
            wait_sentinel:   Return value meaning "not done yet".
            timeout_result:  Returned when the policy deadline passes first.
            mock_delay:      Skip real sleeping (the policy uses a virtual clock).

        Exceptions from ``callback`` propagate unless the policy's
        retry_codes mark them as retryable.
        """
        self.retry_policy.start(mock_delay=mock_delay)
        attempt = 0
        while True:
            attempt += 1
            try:
                result = callback()
                if result != wait_sentinel:
                    return result
            except Exception as e:
                if not self.retry_policy.retry_error(e):
                    raise
                logger.debug("Poll attempt %d failed with a retryable error: %s", attempt, e)
            self.retry_policy.perform_delay()
            if self.retry_policy.deadline_exceeded():
                logger.info("Polling timed out after %d attempt(s)", attempt)
                return timeout_result
