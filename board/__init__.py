"""Client side of the task board: API client, local view and card controllers."""
from .api import BoardAPIClient, BoardAPIError
from .config import BoardSettings
from .moves import TaskMoveController
from .notifications import LoggingNotifier, NotificationAction, NotificationCenter
from .scheduler import AsyncioScheduler, ThreadingScheduler
from .undo import DeletionState, PendingDeletion, TaskDeleteController
from .view import BoardView, HiddenTask

__all__ = [
    "AsyncioScheduler",
    "BoardAPIClient",
    "BoardAPIError",
    "BoardSettings",
    "BoardView",
    "DeletionState",
    "HiddenTask",
    "LoggingNotifier",
    "NotificationAction",
    "NotificationCenter",
    "PendingDeletion",
    "TaskDeleteController",
    "TaskMoveController",
    "ThreadingScheduler",
]
