# board/notifications.py
"""
Notification sink used by the board controllers.

Controllers only call ``notify(kind, title, description, action=None)``;
what happens next (toast, log line, test recorder) is up to the sink.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol
import itertools
import logging
import threading

logger = logging.getLogger("taskboard.board.notifications")

KIND_DEFAULT = "default"
KIND_SUCCESS = "success"
KIND_ERROR = "destructive"


@dataclass
class NotificationAction:
    label: str
    callback: Callable[[], object]


@dataclass
class Notification:
    id: int
    kind: str
    title: str
    description: str = ""
    action: Optional[NotificationAction] = None
    dismissed: bool = field(default=False)


class Notifier(Protocol):
    def notify(self, kind: str, title: str, description: str = "",
               action: Optional[NotificationAction] = None) -> object:
        ...


class LoggingNotifier:
    """Writes notifications to the log. Actions can't be invoked from here."""

    def notify(self, kind, title, description="", action=None):
        level = logging.ERROR if kind == KIND_ERROR else logging.INFO
        logger.log(level, "[%s] %s: %s", kind, title, description)


class NotificationCenter:
    """
    In-memory toast tray: keeps what was shown, lets the UI dismiss a
    notification or invoke its action.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._items: List[Notification] = []

    def notify(self, kind, title, description="", action=None) -> Notification:
        with self._lock:
            notification = Notification(next(self._ids), kind, title, description, action)
            self._items.append(notification)
        logger.debug("Notification %s shown: %s", notification.id, title)
        return notification

    @property
    def history(self) -> List[Notification]:
        with self._lock:
            return list(self._items)

    @property
    def active(self) -> List[Notification]:
        with self._lock:
            return [n for n in self._items if not n.dismissed]

    def get(self, notification_id) -> Optional[Notification]:
        with self._lock:
            return next((n for n in self._items if n.id == notification_id), None)

    def dismiss(self, notification_id) -> bool:
        notification = self.get(notification_id)
        if notification is None or notification.dismissed:
            return False
        notification.dismissed = True
        return True

    def invoke_action(self, notification_id):
        """Run the notification's action (e.g. "Undo") and dismiss it."""
        notification = self.get(notification_id)
        if notification is None or notification.action is None:
            return None
        self.dismiss(notification_id)
        return notification.action.callback()
