# app/client/notifications.py
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional
import logging

import httpx

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"
SUCCESS = "success"


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    status: Optional[int] = None


# user-facing text keyed by HTTP status
STATUS_MESSAGES = {
    401: (WARNING, "Your session has expired. Please sign in again."),
    403: (ERROR, "You do not have permission to perform this action."),
    404: (WARNING, "The requested resource was not found."),
    429: (WARNING, "Too many requests. Please slow down and try again."),
}
SERVER_ERROR = (ERROR, "Server error. Please try again later.")
TIMEOUT_MESSAGE = "The request timed out. Please try again."
NETWORK_MESSAGE = "Network error. Check your connection and try again."

HISTORY_SIZE = 50


def notification_for_status(status: int) -> Optional[Notification]:
    if status in STATUS_MESSAGES:
        level, message = STATUS_MESSAGES[status]
        return Notification(level, message, status)
    if status >= 500:
        level, message = SERVER_ERROR
        return Notification(level, message, status)
    return None


def notification_for_transport_error(exc: Exception) -> Notification:
    if isinstance(exc, httpx.TimeoutException):
        return Notification(ERROR, TIMEOUT_MESSAGE)
    return Notification(ERROR, NETWORK_MESSAGE)


class Notifier:
    """
    Collects toast-style notifications for the UI. Handlers are plain
    callables; with no handler registered notifications are only logged.
    """

    def __init__(self, history_size: int = HISTORY_SIZE):
        self._handlers: List[Callable[[Notification], None]] = []
        # most recent notifications, oldest dropped first
        self.history: Deque[Notification] = deque(maxlen=history_size)

    def add_handler(self, fn: Callable[[Notification], None]) -> None:
        self._handlers.append(fn)

    def emit(self, note: Notification) -> None:
        self.history.append(note)
        logger.info("notify[%s] %s", note.level, note.message)
        for fn in list(self._handlers):
            fn(note)

    def error(self, message: str) -> None:
        self.emit(Notification(ERROR, message))

    def success(self, message: str) -> None:
        self.emit(Notification(SUCCESS, message))
