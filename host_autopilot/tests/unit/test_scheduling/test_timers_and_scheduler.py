from __future__ import annotations

import threading
from datetime import datetime

import pytest

from host_autopilot.scheduling import Scheduler, TimerService, TriggerKind
from host_autopilot.session import LifecycleCoordinator, SessionPhase, SessionStateMachine

WEDNESDAY_NOON = datetime(2024, 5, 15, 12, 0)


@pytest.fixture
def timers():
    service = TimerService(name="test-timers")
    yield service
    service.shutdown()


def test_timer_fires_in_deadline_order(timers) -> None:
    fired = []
    done = threading.Event()
    timers.schedule(0.05, lambda: fired.append("late"))
    timers.schedule(0.0, lambda: fired.append("early"))
    timers.schedule(0.1, done.set)
    assert done.wait(5.0)
    assert fired == ["early", "late"]


def test_cancelled_timer_does_not_fire(timers) -> None:
    fired = []
    done = threading.Event()
    handle = timers.schedule(0.01, lambda: fired.append("x"))
    handle.cancel()
    timers.schedule(0.05, done.set)
    assert done.wait(5.0)
    assert fired == []


def test_failing_callback_does_not_kill_the_timer_thread(timers) -> None:
    done = threading.Event()

    def broken() -> None:
        raise RuntimeError("callback failed")

    timers.schedule(0.0, broken)
    timers.schedule(0.02, done.set)
    assert done.wait(5.0)


def test_schedule_after_shutdown_is_rejected() -> None:
    service = TimerService()
    service.shutdown()
    with pytest.raises(RuntimeError):
        service.schedule(1.0, lambda: None)


def _scheduler(fake_host, inline_pool, manual_timers, **kwargs):
    session = SessionStateMachine()
    coordinator = LifecycleCoordinator(session, fake_host, inline_pool)
    coordinator.start()
    return session, Scheduler(coordinator, manual_timers, inline_pool, host_name="TWS", **kwargs)


def test_scheduler_arms_single_cold_restart(fake_host, inline_pool, manual_timers, caplog) -> None:
    session, scheduler = _scheduler(
        fake_host, inline_pool, manual_timers, closedown_at="Saturday 10:00", cold_restart_time="Thursday 09:00"
    )
    with caplog.at_level("INFO"):
        trigger = scheduler.arm(now=WEDNESDAY_NOON)
    assert trigger.kind is TriggerKind.COLD_RESTART
    assert len(manual_timers.scheduled) == 1
    assert manual_timers.scheduled[0].when == datetime(2024, 5, 16, 9, 0)
    assert "TWS will be cold restarted at 2024/05/16 09:00" in caplog.text

    manual_timers.run_pending()
    assert session.phase is SessionPhase.STOPPED
    assert session.stop_request.cold_restart is True
    assert fake_host.stop_kwargs == {"restart": True, "cold_restart": True}


def test_scheduler_shutdown_is_plain_stop(fake_host, inline_pool, manual_timers) -> None:
    session, scheduler = _scheduler(fake_host, inline_pool, manual_timers, closedown_at="13:00")
    assert scheduler.arm(now=WEDNESDAY_NOON).kind is TriggerKind.SHUTDOWN
    manual_timers.run_pending()
    assert session.stop_request.restart is False
    assert session.stop_request.reason == "ClosedownAt setting"


def test_scheduler_without_times_arms_nothing(fake_host, inline_pool, manual_timers) -> None:
    _, scheduler = _scheduler(fake_host, inline_pool, manual_timers)
    assert scheduler.arm(now=WEDNESDAY_NOON) is None
    assert manual_timers.scheduled == []
    assert scheduler.armed is None


def test_scheduler_arms_only_once_and_cancels(fake_host, inline_pool, manual_timers) -> None:
    _, scheduler = _scheduler(fake_host, inline_pool, manual_timers, closedown_at="13:00")
    scheduler.arm(now=WEDNESDAY_NOON)
    with pytest.raises(RuntimeError):
        scheduler.arm(now=WEDNESDAY_NOON)
    scheduler.cancel()
    assert manual_timers.run_pending() == 0
