"""Shared timer-execution service: fire-at-instant callbacks on one thread."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class TimerHandle:
    deadline: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    name: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class TimerService:
    """A delay queue served by a single daemon thread.

    Callbacks run on the timer thread and must be short: anything heavier is
    expected to be handed to a worker pool from inside the callback.
    """

    def __init__(self, name: str = "timers") -> None:
        self._name = name
        self._queue: List[TimerHandle] = []
        self._counter = itertools.count()
        self._condition = threading.Condition()
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    def schedule(self, delay: float, callback: Callable[[], None], *, name: str = "") -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds."""
        handle = TimerHandle(
            deadline=time.monotonic() + max(0.0, float(delay)),
            sequence=next(self._counter),
            callback=callback,
            name=name,
        )
        with self._condition:
            if self._closed:
                raise RuntimeError("TimerService has been shut down.")
            heapq.heappush(self._queue, handle)
            self._ensure_thread()
            self._condition.notify()
        return handle

    def schedule_at(
        self,
        when: datetime,
        callback: Callable[[], None],
        *,
        name: str = "",
        now: Optional[datetime] = None,
    ) -> TimerHandle:
        """Run ``callback`` at the wall-clock instant ``when``."""
        reference = now or datetime.now(when.tzinfo)
        return self.schedule((when - reference).total_seconds(), callback, name=name)

    def shutdown(self) -> None:
        with self._condition:
            self._closed = True
            self._queue.clear()
            self._condition.notify_all()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _ensure_thread(self) -> None:
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._closed:
                    if not self._queue:
                        self._condition.wait()
                        continue
                    head = self._queue[0]
                    if head.cancelled:
                        heapq.heappop(self._queue)
                        continue
                    wait = head.deadline - time.monotonic()
                    if wait <= 0:
                        heapq.heappop(self._queue)
                        break
                    self._condition.wait(wait)
                else:
                    return
            try:
                head.callback()
            except Exception:
                logger.exception("Timer callback '%s' failed", head.name or head.callback)
