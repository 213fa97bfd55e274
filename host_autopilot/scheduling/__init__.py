"""Wall-clock scheduling of shutdowns and restarts."""

from .timespec import (
    ScheduledTrigger,
    TimeSpec,
    TriggerKind,
    parse_time_spec,
    plan_auto_logoff,
    plan_shutdown,
    resolve_fire_time,
)
from .timers import TimerHandle, TimerService
from .scheduler import Scheduler

__all__ = [
    "ScheduledTrigger",
    "TimeSpec",
    "TriggerKind",
    "parse_time_spec",
    "plan_auto_logoff",
    "plan_shutdown",
    "resolve_fire_time",
    "TimerHandle",
    "TimerService",
    "Scheduler",
]
