class ManualHandle:
    def __init__(self, scheduler, when, callback):
        self.scheduler = scheduler
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: callbacks run only when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = ManualHandle(self, self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds):
        self.now += seconds
        for handle in sorted(self.handles, key=lambda h: h.when):
            if handle.when <= self.now and not handle.cancelled and not handle.fired:
                handle.fired = True
                handle.callback()


def make_task(task_id, title=None, status="TODO", order=0):
    return {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "description": "",
        "status": status,
        "priority": "LOW",
        "order": order,
        "assignee": None,
    }
