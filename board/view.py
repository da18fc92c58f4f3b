# board/view.py
"""
Local kanban state: what the user currently sees, column by column.

Tasks are the plain dicts the API returns. Columns are kept sorted by the
server's `order` when loaded; after that, position in the column list is
the source of truth for what's on screen.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import copy
import threading

STATUS_TODO = "TODO"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_DONE = "DONE"

COLUMNS = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_DONE)


@dataclass(frozen=True)
class HiddenTask:
    """Snapshot of a task taken off the board, with where it was."""
    task: dict
    status: str
    index: int

    @property
    def task_id(self):
        return self.task["id"]


class BoardView:
    def __init__(self, tasks=()):
        self._lock = threading.RLock()
        self._columns: Dict[str, List[dict]] = {}
        self.load(tasks)

    @classmethod
    def from_project(cls, project: dict) -> "BoardView":
        return cls(project.get("tasks", []))

    def load(self, tasks):
        columns = {status: [] for status in COLUMNS}
        for task in sorted(tasks, key=lambda t: (t.get("order", 0), t["id"])):
            columns.setdefault(task.get("status", STATUS_TODO), []).append(dict(task))
        with self._lock:
            self._columns = columns

    def tasks(self, status) -> List[dict]:
        with self._lock:
            return copy.deepcopy(self._columns.get(status, []))

    def task_ids(self, status) -> list:
        with self._lock:
            return [t["id"] for t in self._columns.get(status, [])]

    def locate(self, task_id) -> Optional[Tuple[str, int]]:
        with self._lock:
            for status, column in self._columns.items():
                for index, task in enumerate(column):
                    if task["id"] == task_id:
                        return status, index
        return None

    def contains(self, task_id) -> bool:
        return self.locate(task_id) is not None

    def get(self, task_id) -> Optional[dict]:
        with self._lock:
            location = self.locate(task_id)
            if location is None:
                return None
            status, index = location
            return copy.deepcopy(self._columns[status][index])

    def hide(self, task_id) -> HiddenTask:
        """Take a task off the board. Raises KeyError if it isn't shown."""
        with self._lock:
            location = self.locate(task_id)
            if location is None:
                raise KeyError(task_id)
            status, index = location
            task = self._columns[status].pop(index)
            return HiddenTask(task=task, status=status, index=index)

    def restore(self, hidden: HiddenTask):
        """Put a hidden task back where it was (or at the column end if it shrank)."""
        with self._lock:
            if self.contains(hidden.task_id):
                return
            column = self._columns.setdefault(hidden.status, [])
            column.insert(min(hidden.index, len(column)), hidden.task)

    def move(self, task_id, status, index) -> Tuple[str, int]:
        """
        Drag-and-drop a task to `index` in column `status`.
        Returns the (status, index) it came from.
        """
        with self._lock:
            hidden = self.hide(task_id)
            column = self._columns.setdefault(status, [])
            index = max(0, min(index, len(column)))
            task = dict(hidden.task, status=status)
            column.insert(index, task)
            return hidden.status, hidden.index
