# test_retry_policy.py
#
# Property and example tests for the exponential backoff helper.
#
# Imports
import asyncio
from unittest.mock import AsyncMock
import pytest
#
# Third-Party Imports
from hypothesis import given, settings, strategies as st
#
# Local Imports
from tem_client.config import RetrySettings
from tem_client.tem_api.exceptions import (
    APIConnectionError, APIResponseError, RemoteRejectedError, RemoteTimeoutError, UnavailableError
)
from tem_client.Sync.exceptions import RecordValidationError, SyncCancelledError, SyncProtocolError
from tem_client.Sync.retry_policy import RetryPolicy, is_retryable, with_retry
#
#######################################################################################################################
#
# Helpers

def failing_then(failures, value="done", error_factory=lambda: RemoteTimeoutError("fetchShortcutsBatch", 60)):
    """Coroutine factory that fails `failures` times before returning `value`."""
    state = {"calls": 0}

    async def operation():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise error_factory()
        return value

    return operation, state


class Sleeps:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


# --- Examples ---

@pytest.mark.asyncio
async def test_first_success_needs_no_wait():
    sleeps = Sleeps()
    operation, state = failing_then(0)
    assert await with_retry(operation, sleep=sleeps) == "done"
    assert state["calls"] == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_delays_double_from_initial_delay():
    sleeps = Sleeps()
    operation, state = failing_then(3)
    assert await with_retry(operation, max_attempts=3, initial_delay=1.0, sleep=sleeps) == "done"
    assert state["calls"] == 4
    assert sleeps.delays == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_exhausted_retries_reraise_last_error():
    sleeps = Sleeps()
    errors = iter([APIConnectionError("network down 1"), APIConnectionError("network down 2"),
                   APIConnectionError("network down 3")])

    async def operation():
        raise next(errors)

    with pytest.raises(APIConnectionError, match="network down 3"):
        await with_retry(operation, max_attempts=2, initial_delay=0.5, sleep=sleeps)
    assert sleeps.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_zero_attempts_fails_immediately():
    sleeps = Sleeps()
    operation, state = failing_then(1)
    with pytest.raises(RemoteTimeoutError):
        await with_retry(operation, max_attempts=0, sleep=sleeps)
    assert state["calls"] == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    UnavailableError(),
    SyncCancelledError(),
    RecordValidationError(["Key is required"]),
    SyncProtocolError("no progress"),
    RuntimeError("google.script.run is not available"),
])
async def test_non_transient_errors_are_never_retried(error):
    sleeps = Sleeps()
    operation = AsyncMock(side_effect=error)
    with pytest.raises(type(error)):
        await with_retry(operation, max_attempts=10, sleep=sleeps)
    assert operation.await_count == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_max_delay_caps_single_wait_but_keeps_doubling():
    sleeps = Sleeps()
    operation, _ = failing_then(4)
    await with_retry(operation, max_attempts=4, initial_delay=1.0, max_delay=3.0, sleep=sleeps)
    assert sleeps.delays == [1.0, 2.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_attempts_are_sequential():
    active = {"now": 0, "peak": 0}

    async def operation():
        active["now"] += 1
        active["peak"] = max(active["peak"], active["now"])
        await asyncio.sleep(0)
        active["now"] -= 1
        raise APIConnectionError("connection reset")

    with pytest.raises(APIConnectionError):
        await with_retry(operation, max_attempts=3, initial_delay=0.0)
    assert active["peak"] == 1


def test_transport_errors_are_judged_by_type():
    # A 503 body says "unavailable" but is still a transient server error
    assert is_retryable(APIResponseError(503, "Service Unavailable")) is True
    assert is_retryable(RemoteRejectedError("upsertShortcut", "Lock not available")) is True
    assert is_retryable(UnavailableError()) is False
    assert is_retryable(ValueError("something odd")) is True


def test_policy_from_settings_treats_zero_ceiling_as_none():
    policy = RetryPolicy.from_settings(RetrySettings(max_attempts=5, initial_delay_seconds=0.25, max_delay_seconds=0))
    assert (policy.max_attempts, policy.initial_delay, policy.max_delay) == (5, 0.25, None)


# --- Properties ---

@settings(max_examples=50, deadline=None)
@given(failures=st.integers(min_value=0, max_value=6),
       extra=st.integers(min_value=0, max_value=3),
       initial=st.floats(min_value=0.001, max_value=5.0, allow_nan=False))
def test_n_failures_give_n_doubling_delays(failures, extra, initial):
    sleeps = Sleeps()
    operation, state = failing_then(failures, value=failures)

    result = asyncio.run(with_retry(operation, max_attempts=failures + extra,
                                    initial_delay=initial, sleep=sleeps))

    assert result == failures
    assert state["calls"] == failures + 1
    assert sleeps.delays == [initial * 2 ** i for i in range(failures)]


@settings(max_examples=30, deadline=None)
@given(max_attempts=st.integers(min_value=0, max_value=20))
def test_unavailable_is_never_retried_for_any_budget(max_attempts):
    sleeps = Sleeps()
    operation, state = failing_then(100, error_factory=UnavailableError)

    with pytest.raises(UnavailableError):
        asyncio.run(with_retry(operation, max_attempts=max_attempts, sleep=sleeps))
    assert state["calls"] == 1
    assert sleeps.delays == []

#
# End of test_retry_policy.py
########################################################################################################################
