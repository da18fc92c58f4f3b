# board/moves.py
"""Optimistic drag-and-drop for task cards."""
import logging

from .api import BoardAPIError
from .notifications import KIND_ERROR

logger = logging.getLogger("taskboard.board.moves")


class TaskMoveController:
    """
    Moves the card locally first, then tells the API. If the API refuses,
    the card goes back where it was and an error notification is shown.
    """

    def __init__(self, view, api, notifier):
        self.view = view
        self.api = api
        self.notifier = notifier

    def move(self, task_id, status, index) -> bool:
        from_status, from_index = self.view.move(task_id, status, index)

        try:
            self.api.move_task(task_id, status, index)
        except BoardAPIError as e:
            self.view.move(task_id, from_status, from_index)
            logger.warning(
                "Task move rejected, reverted: task=%s, to=%s/%s, status=%s",
                task_id, status, index, e.status_code,
            )
            message = (
                "You don't have permission to move this task."
                if e.is_permission_error
                else "Failed to move task."
            )
            self.notifier.notify(KIND_ERROR, "Error", message)
            return False

        logger.info("Task moved: task=%s, from=%s/%s, to=%s/%s", task_id, from_status, from_index, status, index)
        return True
