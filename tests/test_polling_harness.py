import pytest

from cloud_logging_utils.polling_harness import PollingHarness
from cloud_logging_utils.retry_policy import RetryPolicy


class Counter:
    def __init__(self):
        self.count = 0


class TestRetryPolicy:

    def test_equality_ignores_run_state(self):
        policy = RetryPolicy(initial_delay=20)
        policy.start(mock_delay=True)
        policy.perform_delay()
        assert policy == RetryPolicy(initial_delay=20)
        assert policy != RetryPolicy(initial_delay=10)

    def test_delay_grows_to_max(self):
        policy = RetryPolicy(initial_delay=1, multiplier=2, max_delay=5)
        policy.start(mock_delay=True)
        delays = []
        for _ in range(4):
            delays.append(policy.delay)
            policy.perform_delay()
        assert delays == [1, 2, 4, 5]
        assert policy.perform_delay_count == 4

    def test_deadline(self):
        policy = RetryPolicy(initial_delay=2, multiplier=1, timeout=3)
        policy.start(mock_delay=True)
        policy.perform_delay()
        assert not policy.deadline_exceeded()
        policy.perform_delay()
        assert policy.deadline_exceeded()

    def test_no_deadline(self):
        policy = RetryPolicy(timeout=None)
        policy.start(mock_delay=True)
        assert policy.remaining() is None
        assert not policy.deadline_exceeded()

    def test_retry_error(self, make_http_error):
        policy = RetryPolicy(retry_codes=[503])
        assert policy.retry_error(make_http_error(503))
        assert not policy.retry_error(make_http_error(404))
        assert not policy.retry_error(ValueError("nope"))

    def test_call(self, make_http_error):
        policy = RetryPolicy(retry_codes=[429])
        policy.start(mock_delay=True)
        assert policy(make_http_error(429)) is True
        assert policy(make_http_error(500)) is False
        assert policy.perform_delay_count == 1

    def test_call_starts_policy_on_first_use(self, make_http_error):
        policy = RetryPolicy(initial_delay=0, retry_codes=[503], timeout=0)
        assert policy(make_http_error(503)) is False
        assert policy.perform_delay_count == 0

    def test_call_after_deadline(self):
        policy = RetryPolicy(initial_delay=1, timeout=1)
        policy.start(mock_delay=True)
        assert policy() is True
        assert policy() is False


class TestPollingHarness:

    def test_init(self):
        harness = PollingHarness(initial_delay=20)
        assert harness.retry_policy == RetryPolicy(initial_delay=20)

    def test_explicit_policy(self):
        policy = RetryPolicy(initial_delay=3)
        assert PollingHarness(retry_policy=policy).retry_policy is policy

    def test_wait_perform_delay_once(self):
        counter = Counter()
        harness = PollingHarness()

        def poll():
            counter.count += 1
            return None if counter.count <= 1 else "done"

        assert harness.wait(poll, mock_delay=True) == "done"
        assert harness.retry_policy.perform_delay_count == 1
        assert counter.count == 2

    def test_wait_perform_delay_many(self):
        counter = Counter()
        harness = PollingHarness()

        def poll():
            counter.count += 1
            return None if counter.count <= 4 else "done"

        assert harness.wait(poll, mock_delay=True) == "done"
        assert harness.retry_policy.perform_delay_count == 4
        assert counter.count == 5

    def test_wait_with_retriable_code(self, make_http_error):
        counter = Counter()
        harness = PollingHarness(retry_codes=[503])

        def poll():
            counter.count += 1
            if counter.count <= 1:
                raise make_http_error(503)
            return "done"

        assert harness.wait(poll, mock_delay=True) == "done"
        assert harness.retry_policy.perform_delay_count == 1
        assert counter.count == 2

    def test_wait_non_retriable_code(self, make_http_error):
        counter = Counter()
        harness = PollingHarness(retry_codes=[429])
        error = make_http_error(409)

        def poll():
            counter.count += 1
            raise error

        with pytest.raises(type(error)):
            harness.wait(poll, mock_delay=True)
        assert harness.retry_policy.perform_delay_count == 0
        assert counter.count == 1

    def test_wait_requires_callback(self):
        with pytest.raises(TypeError):
            PollingHarness().wait()

    def test_wait_with_timeout(self):
        counter = Counter()
        harness = PollingHarness(initial_delay=2, multiplier=1, timeout=3)

        def poll():
            counter.count += 1

        assert harness.wait(poll, timeout_result="timed out", mock_delay=True) == "timed out"
        assert counter.count == 2
        assert harness.retry_policy.perform_delay_count == 2

    def test_wait_sentinel(self):
        results = iter(["pending", "pending", "ready"])
        harness = PollingHarness()
        assert harness.wait(lambda: next(results), wait_sentinel="pending", mock_delay=True) == "ready"
        assert harness.retry_policy.perform_delay_count == 2
