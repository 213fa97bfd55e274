"""Arms the scheduled shutdown or cold restart of the host."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from datetime import datetime
from typing import Optional

from ..session import LifecycleCoordinator, StopRequest
from .timers import TimerHandle, TimerService
from .timespec import ScheduledTrigger, TriggerKind, plan_shutdown

logger = logging.getLogger(__name__)


class Scheduler:
    """Resolves ClosedownAt / ColdRestartTime and arms exactly one timer.

    When the timer fires it only enqueues the stop request onto the worker
    pool; lifecycle logic never runs on the timer thread.
    """

    def __init__(
        self,
        coordinator: LifecycleCoordinator,
        timers: TimerService,
        pool: Executor,
        *,
        closedown_at: str = "",
        cold_restart_time: str = "",
        host_name: str = "Host",
    ) -> None:
        self._coordinator = coordinator
        self._timers = timers
        self._pool = pool
        self._closedown_at = closedown_at
        self._cold_restart_time = cold_restart_time
        self._host_name = host_name
        self._trigger: Optional[ScheduledTrigger] = None
        self._handle: Optional[TimerHandle] = None

    @property
    def armed(self) -> Optional[ScheduledTrigger]:
        return self._trigger

    def plan(self, now: Optional[datetime] = None) -> Optional[ScheduledTrigger]:
        """Compute the winning trigger; raises InvalidSettingError for malformed times."""
        return plan_shutdown(self._closedown_at, self._cold_restart_time, now or datetime.now())

    def arm(self, now: Optional[datetime] = None) -> Optional[ScheduledTrigger]:
        if self._handle is not None:
            raise RuntimeError("Scheduler is already armed.")
        reference = now or datetime.now()
        trigger = self.plan(reference)
        if trigger is None:
            return None
        cold = trigger.kind is TriggerKind.COLD_RESTART
        logger.info(
            "%s will be %s at %s",
            self._host_name,
            "cold restarted" if cold else "shut down",
            trigger.fire_time.strftime("%Y/%m/%d %H:%M"),
        )
        self._trigger = trigger
        self._handle = self._timers.schedule_at(
            trigger.fire_time, self._fire, name=trigger.kind.value, now=reference
        )
        return trigger

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        trigger = self._trigger
        if trigger is None:
            return
        request = StopRequest(
            reason=trigger.source,
            restart=trigger.kind is TriggerKind.COLD_RESTART,
            cold_restart=trigger.kind is TriggerKind.COLD_RESTART,
        )
        logger.info("Scheduled %s is due", trigger.kind.value)
        self._pool.submit(self._coordinator.request_stop, request)
