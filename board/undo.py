# board/undo.py
"""
Delete-with-undo for task cards.

    VISIBLE → PENDING_DELETE → RESTORED   (undo before the timer fires)
                             → COMMITTED  (timer fired, remote delete ok)
                             → VISIBLE    (timer fired, remote delete failed)

A request hides the task right away, arms a timer and shows a notification
with an "Undo" action. The snapshot needed to restore the task and the
timer handle live in one PendingDeletion. Undo and expiry both have to
*claim* that object under the controller lock before acting, so exactly one
of {restore, remote delete} runs per deletion.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import logging
import threading

from .api import BoardAPIError
from .config import DEFAULT_UNDO_DELAY_MS, BoardSettings
from .notifications import KIND_DEFAULT, KIND_ERROR, KIND_SUCCESS, LoggingNotifier, NotificationAction
from .scheduler import ThreadingScheduler, TimerHandle
from .view import BoardView, HiddenTask

logger = logging.getLogger("taskboard.board.undo")


class DeletionState(str, Enum):
    VISIBLE = "VISIBLE"
    PENDING_DELETE = "PENDING_DELETE"
    RESTORED = "RESTORED"
    COMMITTED = "COMMITTED"


@dataclass(eq=False)
class PendingDeletion:
    snapshot: HiddenTask
    handle: Optional[TimerHandle] = None
    state: DeletionState = DeletionState.PENDING_DELETE
    error: Optional[Exception] = field(default=None)
    # whatever the notifier returned for the "Undo" toast
    notification: object = None

    @property
    def task_id(self):
        return self.snapshot.task_id

    @property
    def title(self):
        return self.snapshot.task.get("title", "")


class TaskDeleteController:
    def __init__(self, view: BoardView, api, notifier, scheduler=None,
                 delay_ms: int = DEFAULT_UNDO_DELAY_MS):
        self.view = view
        self.api = api
        self.notifier = notifier
        self.scheduler = scheduler or ThreadingScheduler()
        self.delay_ms = delay_ms

        # RLock: a scheduler may run the callback synchronously while we arm it
        self._lock = threading.RLock()
        self._pending: Dict[object, PendingDeletion] = {}

    @classmethod
    def from_settings(cls, settings: BoardSettings, view: BoardView, api,
                      notifier=None, scheduler=None) -> "TaskDeleteController":
        return cls(
            view,
            api,
            notifier if notifier is not None else LoggingNotifier(),
            scheduler=scheduler,
            delay_ms=settings.undo_delay_ms,
        )

    # ---- queries ------------------------------------------------------

    def is_pending(self, task_id) -> bool:
        with self._lock:
            return task_id in self._pending

    def pending_ids(self) -> List[object]:
        with self._lock:
            return list(self._pending)

    def state(self, task_id) -> Optional[DeletionState]:
        if self.is_pending(task_id):
            return DeletionState.PENDING_DELETE
        if self.view.contains(task_id):
            return DeletionState.VISIBLE
        return None

    # ---- transitions --------------------------------------------------

    def request_delete(self, task_id) -> PendingDeletion:
        """
        VISIBLE → PENDING_DELETE. A second request while one is pending
        returns the existing deletion; the timer is not re-armed.
        Raises KeyError if the task isn't on the board. If the timer can't
        be armed the task is put back and the scheduler's error propagates.
        """
        with self._lock:
            existing = self._pending.get(task_id)
            if existing is not None:
                logger.debug("Delete already pending: task=%s", task_id)
                return existing

            pending = PendingDeletion(snapshot=self.view.hide(task_id))
            self._pending[task_id] = pending
            try:
                pending.handle = self.scheduler.call_later(
                    self.delay_ms / 1000.0,
                    lambda: self._expire(pending),
                )
            except Exception:
                del self._pending[task_id]
                self.view.restore(pending.snapshot)
                pending.state = DeletionState.VISIBLE
                logger.exception("Could not arm delete timer: task=%s", task_id)
                raise

        logger.info("Task delete pending: task=%s, delay_ms=%s", task_id, self.delay_ms)
        pending.notification = self.notifier.notify(
            KIND_DEFAULT,
            "Task deleted",
            f'"{pending.title}" will be deleted.',
            action=NotificationAction("Undo", lambda: self._undo(pending)),
        )
        return pending

    def undo(self, task_id) -> bool:
        """
        PENDING_DELETE → RESTORED. Returns False when there is nothing to
        undo, including when the timer already fired.
        """
        with self._lock:
            pending = self._pending.get(task_id)
        if pending is None:
            return False
        return self._undo(pending)

    def flush(self):
        """Commit every pending deletion now, e.g. when leaving the board."""
        with self._lock:
            pending = list(self._pending.values())
        for deletion in pending:
            deletion.handle.cancel()
            self._expire(deletion)

    # ---- internals ----------------------------------------------------

    def _claim(self, pending: PendingDeletion) -> bool:
        with self._lock:
            if self._pending.get(pending.task_id) is not pending:
                return False
            del self._pending[pending.task_id]
        self._dismiss_undo_toast(pending)
        return True

    def _dismiss_undo_toast(self, pending: PendingDeletion):
        dismiss = getattr(self.notifier, "dismiss", None)
        notification_id = getattr(pending.notification, "id", None)
        if dismiss is not None and notification_id is not None:
            dismiss(notification_id)

    def _undo(self, pending: PendingDeletion) -> bool:
        if not self._claim(pending):
            return False

        pending.handle.cancel()
        self.view.restore(pending.snapshot)
        pending.state = DeletionState.RESTORED

        logger.info("Task delete undone: task=%s", pending.task_id)
        self.notifier.notify(KIND_SUCCESS, "Task restored", f'"{pending.title}" is back on the board.')
        return True

    def _expire(self, pending: PendingDeletion):
        if not self._claim(pending):
            return

        try:
            self.api.delete_task(pending.task_id)
        except BoardAPIError as e:
            if e.is_not_found:
                # already gone on the server
                pending.state = DeletionState.COMMITTED
                logger.info("Task already deleted remotely: task=%s", pending.task_id)
                return
            logger.warning("Task delete failed, restored: task=%s, status=%s", pending.task_id, e.status_code)
            self._fail(pending, e)
            return
        except Exception as e:
            # timer thread or flush(): no caller left to put the task back
            logger.exception("Task delete crashed, restored: task=%s", pending.task_id)
            self._fail(pending, e)
            return

        pending.state = DeletionState.COMMITTED
        logger.info("Task delete committed: task=%s", pending.task_id)

    def _fail(self, pending: PendingDeletion, error: Exception):
        self.view.restore(pending.snapshot)
        pending.state = DeletionState.VISIBLE
        pending.error = error
        self.notifier.notify(KIND_ERROR, "Error", "Failed to delete task.")
