# tem_client/Sync/retry_policy.py
"""
Exponential backoff for any fallible coroutine.

The first call is made immediately. After a failure the policy waits
`initial_delay`, then `2 * initial_delay`, `4 * initial_delay`, ... before
each further call, for at most `max_attempts` retries. There is no jitter.
`max_delay` (optional) caps a single wait without changing the doubling law.

Failures classified as "bridge unavailable" or "cancelled", plus local
validation / protocol / superseded errors, are re-raised at once.
"""
#
# Imports
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
from ..tem_api.exceptions import TEMAPIError, UnavailableError
from .error_classifier import ErrorKind, classify
from .exceptions import RecordValidationError, SyncProtocolError, SyncSupersededError
#
########################################################################################################################
#
# Functions:

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]

_NEVER_RETRY = (RecordValidationError, SyncProtocolError, SyncSupersededError)


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, _NEVER_RETRY):
        return False
    if isinstance(error, TEMAPIError):
        # Transport errors are judged by type, never by message text
        return not isinstance(error, UnavailableError)
    return classify(error).kind not in (ErrorKind.UNAVAILABLE, ErrorKind.CANCELLED)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: Optional[float] = None,
    sleep: Sleeper = asyncio.sleep,
    description: str = "remote call",
) -> T:
    """
    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        max_attempts: Retries allowed after the first call.
        initial_delay: Seconds to wait before the first retry.
        max_delay: Optional ceiling for a single wait, in seconds.
        sleep: Awaitable used for waiting (injectable for tests).
        description: Used in log lines only.

    Returns:
        Whatever `operation` returns on its first success.

    Raises:
        The last error once retries are exhausted, or any non-retryable error immediately.
    """
    attempts_left = max_attempts
    delay = initial_delay
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempts_left <= 0 or not is_retryable(error):
                raise
            wait = delay if max_delay is None else min(delay, max_delay)
            logger.warning(f"{description} failed ({error}); retrying in {wait:.2f}s, "
                           f"{attempts_left} retr{'y' if attempts_left == 1 else 'ies'} left")
            await sleep(wait)
            attempts_left -= 1
            delay *= 2


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: Optional[float] = None
    sleep: Sleeper = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            initial_delay=settings.initial_delay_seconds,
            max_delay=settings.max_delay_seconds or None,
        )

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "remote call") -> T:
        return await with_retry(
            operation,
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            sleep=self.sleep,
            description=description,
        )

#
# End of tem_client/Sync/retry_policy.py
########################################################################################################################
