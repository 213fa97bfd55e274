"""
Wall-clock time specifications and their resolution into fire times.

Two textual forms are accepted: a bare ``HH:MM`` (daily) and
``<Weekday> HH:MM`` (weekly). A resolved fire time is always strictly after
the instant it was computed from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..errors import InvalidSettingError

_SPEC_RE = re.compile(r"^\s*(?:(?P<day>[A-Za-z]+)\s+)?(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*$")

_WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)


class TriggerKind(str, Enum):
    SHUTDOWN = "shutdown"
    COLD_RESTART = "cold_restart"
    AUTO_LOGOFF = "auto_logoff"
    AUTO_RESTART = "auto_restart"


@dataclass(frozen=True, slots=True)
class TimeSpec:
    hour: int
    minute: int
    weekday: Optional[int] = None
    text: str = ""

    @property
    def recurrence(self) -> str:
        return "daily" if self.weekday is None else "weekly"

    def clock(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True, slots=True)
class ScheduledTrigger:
    kind: TriggerKind
    fire_time: datetime
    recurrence: str
    source: str = ""

    def describe(self) -> str:
        return f"{self.kind.value} at {self.fire_time:%Y/%m/%d %H:%M} ({self.source or self.recurrence})"


def _weekday(name: str) -> Optional[int]:
    lowered = name.lower()
    if lowered in _WEEKDAYS:
        return _WEEKDAYS[lowered]
    if len(lowered) == 3:
        for full, index in _WEEKDAYS.items():
            if full.startswith(lowered):
                return index
    return None


def parse_time_spec(text: str, *, setting: str = "time", allow_weekday: bool = True) -> TimeSpec:
    """Parse ``HH:MM`` or ``<Weekday> HH:MM``; malformed text is a fatal setting error."""
    expected = "<[day ]hh:mm>   eg 22:00 or Friday 22:00" if allow_weekday else "<hh:mm>   eg 13:00"
    match = _SPEC_RE.match(text or "")
    if match is None:
        raise InvalidSettingError(setting, text, expected)
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        raise InvalidSettingError(setting, text, expected)
    weekday: Optional[int] = None
    day = match.group("day")
    if day:
        weekday = _weekday(day)
        if weekday is None or not allow_weekday:
            raise InvalidSettingError(setting, text, expected)
    return TimeSpec(hour=hour, minute=minute, weekday=weekday, text=text.strip())


def resolve_fire_time(spec: TimeSpec, now: datetime, *, default_weekday: Optional[int] = None) -> datetime:
    """Return the next instant strictly after ``now`` matching the spec."""
    candidate = now.replace(hour=spec.hour, minute=spec.minute, second=0, microsecond=0)
    weekday = spec.weekday if spec.weekday is not None else default_weekday
    if weekday is None:
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate
    candidate += timedelta(days=(weekday - candidate.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def plan_shutdown(
    closedown_at: str, cold_restart_time: str, now: datetime
) -> Optional[ScheduledTrigger]:
    """Pick the earlier of the closedown and cold-restart times.

    A bare ColdRestartTime means that time on Sunday. The trigger is tagged as
    a cold restart only when the cold restart is strictly earlier.
    """
    shutdown: Optional[ScheduledTrigger] = None
    cold: Optional[ScheduledTrigger] = None
    if closedown_at and closedown_at.strip():
        spec = parse_time_spec(closedown_at, setting="ClosedownAt")
        shutdown = ScheduledTrigger(
            kind=TriggerKind.SHUTDOWN,
            fire_time=resolve_fire_time(spec, now),
            recurrence=spec.recurrence,
            source="ClosedownAt setting",
        )
    if cold_restart_time and cold_restart_time.strip():
        spec = parse_time_spec(cold_restart_time, setting="ColdRestartTime")
        cold = ScheduledTrigger(
            kind=TriggerKind.COLD_RESTART,
            fire_time=resolve_fire_time(spec, now, default_weekday=SUNDAY),
            recurrence="weekly",
            source="ColdRestartTime setting",
        )
    if shutdown is None:
        return cold
    if cold is None:
        return shutdown
    return cold if cold.fire_time < shutdown.fire_time else shutdown


def plan_auto_logoff(
    auto_logoff_time: str, auto_restart_time: str, now: datetime
) -> Optional[ScheduledTrigger]:
    """Resolve the host's own daily auto-logoff or auto-restart; restart wins."""
    if auto_restart_time and auto_restart_time.strip():
        spec = parse_time_spec(auto_restart_time, setting="AutoRestartTime", allow_weekday=False)
        return ScheduledTrigger(
            kind=TriggerKind.AUTO_RESTART,
            fire_time=resolve_fire_time(spec, now),
            recurrence="daily",
            source="AutoRestartTime setting",
        )
    if auto_logoff_time and auto_logoff_time.strip():
        spec = parse_time_spec(auto_logoff_time, setting="AutoLogoffTime", allow_weekday=False)
        return ScheduledTrigger(
            kind=TriggerKind.AUTO_LOGOFF,
            fire_time=resolve_fire_time(spec, now),
            recurrence="daily",
            source="AutoLogoffTime setting",
        )
    return None
