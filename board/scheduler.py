# board/scheduler.py
"""
Deferred-callback schedulers for the board controllers.

Every scheduler returns a handle whose ``cancel()`` is idempotent and never
raises, whether the timer is pending, already fired or already cancelled.
"""
from typing import Callable, Protocol
import asyncio
import threading


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class _ThreadingHandle:
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self):
        self._timer.cancel()


class ThreadingScheduler:
    """Runs callbacks on daemon `threading.Timer` threads."""

    def call_later(self, delay, callback):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingHandle(timer)


class AsyncioScheduler:
    """
    Runs callbacks on an asyncio event loop. Callbacks run on the loop's
    thread, so undo and expiry never interleave.
    """

    def __init__(self, loop=None):
        self._loop = loop

    @property
    def loop(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay, callback):
        return self.loop.call_later(delay, callback)
