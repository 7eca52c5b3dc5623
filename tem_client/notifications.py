# notifications.py
# Description: Toast-style, self-expiring user notifications.
#
# Imports
import itertools
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Literal, Optional
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
#
########################################################################################################################
#
# Functions:

Severity = Literal["information", "success", "warning", "error"]

DEFAULT_TIMEOUT_SECONDS = 2.5
DEFAULT_HISTORY_LIMIT = 200

_LOG_LEVELS = {
    "information": "INFO",
    "success": "SUCCESS",
    "warning": "WARNING",
    "error": "ERROR",
}


@dataclass
class Notification:
    id: int
    message: str
    severity: Severity
    created_at: float
    timeout: float

    def expired(self, now: float) -> bool:
        return now - self.created_at >= self.timeout


class NotificationCenter:
    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 listener: Optional[Callable[[Notification], None]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.default_timeout = default_timeout
        self.listener = listener
        self._clock = clock
        self._ids = itertools.count(1)
        self._items: List[Notification] = []
        self.history: Deque[Notification] = deque(maxlen=history_limit)

    def notify(self, message: str, severity: Severity = "information", timeout: Optional[float] = None) -> Notification:
        notification = Notification(
            id=next(self._ids),
            message=message,
            severity=severity,
            created_at=self._clock(),
            timeout=self.default_timeout if timeout is None else timeout,
        )
        self._prune(notification.created_at)
        self._items.append(notification)
        self.history.append(notification)
        logger.log(_LOG_LEVELS.get(severity, "INFO"), f"[notify] {message}")
        if self.listener is not None:
            try:
                self.listener(notification)
            except Exception as e:
                logger.opt(exception=e).error(f"Notification listener failed: {e}")
        return notification

    def active(self) -> List[Notification]:
        self._prune(self._clock())
        return list(self._items)

    def _prune(self, now: float) -> None:
        self._items = [item for item in self._items if not item.expired(now)]

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != notification_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items.clear()

#
# End of notifications.py
########################################################################################################################
