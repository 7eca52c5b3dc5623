# Tests/conftest.py
#
#
# Imports
import inspect
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Tuple
import pytest
#
# Third-party imports
#
# Local imports
from tem_client.notifications import NotificationCenter
from tem_client.tem_api.client import RemoteBridge
from tem_client.tem_api.gateway import RemoteCallGateway
from tem_client.Sync.record_store import RecordStore
from tem_client.Sync.retry_policy import RetryPolicy
#
############################################################################################################################
#
# Functions:

def _name(operation) -> str:
    return getattr(operation, "value", operation)


class FakeBridge(RemoteBridge):
    """
    Scripted stand-in for the backend.

    Each operation has a queue of outcomes consumed one per call. An outcome
    is a result value, an exception instance (raised), or a callable taking
    the call's args (its return value, awaited if needed, is the result).
    When a queue is empty the operation's default outcome is used.
    """

    def __init__(self):
        self.calls: List[Tuple[str, List[Any]]] = []
        self._scripts: Dict[str, Deque[Any]] = defaultdict(deque)
        self._defaults: Dict[str, Any] = {}
        self.closed = False

    def script(self, operation, *outcomes) -> "FakeBridge":
        self._scripts[_name(operation)].extend(outcomes)
        return self

    def set_default(self, operation, outcome) -> "FakeBridge":
        self._defaults[_name(operation)] = outcome
        return self

    def calls_to(self, operation) -> List[List[Any]]:
        name = _name(operation)
        return [args for op, args in self.calls if op == name]

    async def call(self, operation: str, args) -> Any:
        self.calls.append((operation, list(args)))
        queue = self._scripts.get(operation)
        if queue:
            outcome = queue.popleft()
        elif operation in self._defaults:
            outcome = self._defaults[operation]
        else:
            raise AssertionError(f"Unscripted call to '{operation}'")
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            outcome = outcome(list(args))
            if inspect.isawaitable(outcome):
                outcome = await outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


def make_raw_records(count: int, start: int = 0, language: str = "English") -> List[Dict[str, Any]]:
    """Rows shaped like the backend's shortcut sheet."""
    return [
        {
            "key": f";k{i}",
            "expansion": f"expansion number {i}",
            "language": language,
            "description": f"shortcut {i}",
            "mainCategory": "General",
            "favorite": "false",
        }
        for i in range(start, start + count)
    ]


class RecordingSleep:
    """Async sleep replacement that records the requested delays and returns at once."""

    def __init__(self):
        self.delays: List[float] = []
        self.hooks = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        for hook in self.hooks:
            hook(delay)


@pytest.fixture
def raw_records():
    """Factory fixture: raw_records(count, start=0, language="English")."""
    return make_raw_records


@pytest.fixture
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def gateway(fake_bridge) -> RemoteCallGateway:
    return RemoteCallGateway(fake_bridge, default_timeout=5.0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_policy(recording_sleep) -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_delay=1.0, sleep=recording_sleep)


@pytest.fixture
def notifier() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()

#
# End of conftest.py
############################################################################################################################
