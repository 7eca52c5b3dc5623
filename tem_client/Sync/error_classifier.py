# tem_client/Sync/error_classifier.py
# Description: Maps raw failures to a small, user-facing taxonomy.
#
# Imports
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Type
#
# Local Imports
from ..tem_api.exceptions import APIConnectionError, RemoteTimeoutError, UnavailableError
from .exceptions import SyncCancelledError
#
########################################################################################################################
#
# Functions:

class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNAVAILABLE = "unavailable"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    title: str
    description: str

    def __str__(self):
        return f"{self.title}: {self.description}"


# Ordered: first match wins. Timeout messages often mention the connection,
# so timeout is checked before network.
_RULES: Tuple[Tuple[ErrorKind, str, str, Tuple[Type[BaseException], ...], Tuple[str, ...]], ...] = (
    (ErrorKind.TIMEOUT, "Connection Timeout",
     "The server took too long to respond. Check your connection and retry.",
     (RemoteTimeoutError, asyncio.TimeoutError), ("timeout", "timed out")),
    (ErrorKind.NETWORK, "Network Failure",
     "Could not reach the server. Check your internet connection.",
     (APIConnectionError,), ("network", "failed to fetch", "connection")),
    (ErrorKind.UNAVAILABLE, "Environment Error",
     "The backend bridge is not available in this environment.",
     (UnavailableError,), ("not available", "unavailable")),
    (ErrorKind.CANCELLED, "Cancelled",
     "The operation was cancelled.",
     (SyncCancelledError, asyncio.CancelledError), ("cancel",)),
)


def _message_of(error: BaseException) -> str:
    message = str(error)
    return message if message else type(error).__name__


def classify(error: BaseException) -> ClassifiedError:
    """Pure: same error in, same classification out."""
    message = _message_of(error)
    lowered = message.lower()
    for kind, title, description, types, needles in _RULES:
        if isinstance(error, types) or any(needle in lowered for needle in needles):
            return ClassifiedError(kind, title, description)
    return ClassifiedError(ErrorKind.UNKNOWN, "Sync Error", message)

#
# End of tem_client/Sync/error_classifier.py
########################################################################################################################
