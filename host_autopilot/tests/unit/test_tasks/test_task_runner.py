from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest

from host_autopilot.automation.driver import WindowSignature
from host_autopilot.scheduling import TimerService
from host_autopilot.session import SessionMode, SessionStateMachine
from host_autopilot.tasks import (
    ConfigurationTask,
    ConfigurationTaskRunner,
    InvokeMutation,
    RetryPolicy,
    TaskOutcome,
    TextMutation,
    ToggleMutation,
)

CONFIG = WindowSignature(title_prefix="Global Configuration")


@pytest.fixture
def runner(window_source, manual_timers, inline_pool) -> ConfigurationTaskRunner:
    return ConfigurationTaskRunner(window_source, manual_timers, inline_pool, SessionStateMachine())


def _config_dialog(ui, *controls):
    tree = ui.control("tree", "Tree", ui.control("API", "TreeItem"), ui.control("Settings", "TreeItem"))
    return ui.window("Global Configuration", tree, *controls, ui.button("Apply"))


def _task(mutation, **kwargs) -> ConfigurationTask:
    kwargs.setdefault("page", ("API", "Settings"))
    kwargs.setdefault("commit_button", "Apply")
    return ConfigurationTask(name="ReadOnlyApi", target=CONFIG, mutation=mutation, **kwargs)


def test_toggle_applied_and_committed(runner, window_source, ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=False)
    dialog = _config_dialog(ui, box)
    window_source.visible.append(dialog)

    outcome = runner.submit(_task(ToggleMutation("Read-Only API", True))).result(timeout=1)

    assert outcome is TaskOutcome.APPLIED
    assert box.toggled is True
    apply = [node for node in dialog.controls() if node.name == "Apply"][0]
    assert apply.invocations == 1


def test_matching_state_is_no_change(runner, window_source, ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=True)
    dialog = _config_dialog(ui, box)
    window_source.visible.append(dialog)

    assert runner.submit(_task(ToggleMutation("Read-Only API", True))).result(timeout=1) is TaskOutcome.NO_CHANGE
    assert box.writes == []
    apply = [node for node in dialog.controls() if node.name == "Apply"][0]
    assert apply.invocations == 0


def test_missing_control_is_reported_not_raised(runner, window_source, ui) -> None:
    window_source.visible.append(_config_dialog(ui))
    outcome = runner.submit(_task(TextMutation("Master API client ID", "7"))).result(timeout=1)
    assert outcome is TaskOutcome.CONTROL_MISSING


def test_dialog_never_appears_times_out_after_retries(runner, window_source, manual_timers) -> None:
    opened: List[str] = []
    task = _task(
        ToggleMutation("Read-Only API", True),
        retry=RetryPolicy(interval=0.5, attempts=3),
        open_dialog=lambda: opened.append("menu"),
    )
    future = runner.submit(task)
    assert not future.done()

    manual_timers.run_pending()

    assert future.result(timeout=1) is TaskOutcome.TIMED_OUT
    assert window_source.lookups == 3
    assert opened == ["menu"]


def test_dialog_appearing_later_is_picked_up(runner, window_source, manual_timers, ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=False)
    future = runner.submit(_task(ToggleMutation("Read-Only API", True), retry=RetryPolicy(interval=0.5, attempts=5)))
    assert manual_timers.scheduled[0].delay == 0.5

    window_source.visible.append(_config_dialog(ui, box))
    manual_timers.run_pending()

    assert future.result(timeout=1) is TaskOutcome.APPLIED
    assert window_source.lookups == 2


def test_fix_mode_skips_tasks_not_meant_for_fix(window_source, manual_timers, inline_pool, caplog) -> None:
    runner = ConfigurationTaskRunner(window_source, manual_timers, inline_pool, SessionStateMachine(SessionMode.FIX))
    with caplog.at_level("INFO"):
        outcome = runner.submit(_task(ToggleMutation("Read-Only API", True))).result(timeout=1)
    assert outcome is TaskOutcome.SKIPPED
    assert "ReadOnlyApi - ignored for FIX" in caplog.text
    assert window_source.lookups == 0


def test_locator_failure_completes_as_failed(manual_timers, inline_pool) -> None:
    class BrokenLocator:
        def find_window(self, signature):
            raise RuntimeError("desktop unavailable")

    runner = ConfigurationTaskRunner(BrokenLocator(), manual_timers, inline_pool)
    assert runner.submit(_task(ToggleMutation("Read-Only API", True))).result(timeout=1) is TaskOutcome.FAILED


def test_invoke_mutation_presses_button_without_commit(runner, window_source, ui) -> None:
    reset = ui.button("Reset API order ID sequence")
    window_source.visible.append(_config_dialog(ui, reset))
    task = _task(InvokeMutation("Reset API order ID sequence"), commit_button=None)
    assert runner.submit(task).result(timeout=1) is TaskOutcome.APPLIED
    assert reset.invocations == 1


def test_closed_pool_abandons_task(window_source, manual_timers, inline_pool) -> None:
    inline_pool.shutdown()
    runner = ConfigurationTaskRunner(window_source, manual_timers, inline_pool)
    assert runner.submit(_task(ToggleMutation("Read-Only API", True))).result(timeout=1) is TaskOutcome.FAILED


def test_burst_of_tasks_opens_the_dialog_once(runner, window_source, manual_timers, ui) -> None:
    opened: List[str] = []

    def open_dialog() -> None:
        opened.append("menu")

    box = ui.control("Read-Only API", "CheckBox", toggled=False)
    retry = RetryPolicy(interval=0.5, attempts=3)
    futures = [
        runner.submit(_task(ToggleMutation("Read-Only API", True), retry=retry, open_dialog=open_dialog))
        for _ in range(3)
    ]
    assert opened == ["menu"]

    window_source.visible.append(_config_dialog(ui, box))
    manual_timers.run_pending()

    outcomes = [future.result(timeout=1) for future in futures]
    assert outcomes == [TaskOutcome.APPLIED, TaskOutcome.NO_CHANGE, TaskOutcome.NO_CHANGE]
    assert opened == ["menu"]


def test_tasks_on_different_pages_take_turns_with_the_dialog(window_source, ui) -> None:
    read_only = ui.control("Read-Only API", "CheckBox", toggled=False)
    bypass = ui.control("Bypass Order Precautions for API Orders", "CheckBox", toggled=False)
    page = ui.control("page", "Pane")

    def show(*controls):
        def select() -> None:
            page._children[:] = controls
            # keep the page up long enough for the other task to switch it
            time.sleep(0.05)

        return select

    tree = ui.control(
        "tree",
        "Tree",
        ui.control("API", "TreeItem"),
        ui.control("Settings", "TreeItem", on_invoke=show(read_only)),
        ui.control("Precautions", "TreeItem", on_invoke=show(bypass)),
    )
    window_source.visible.append(ui.window("Global Configuration", tree, page, ui.button("Apply")))

    timers = TimerService()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            runner = ConfigurationTaskRunner(window_source, timers, pool, SessionStateMachine())
            futures = [
                runner.submit(_task(ToggleMutation("Read-Only API", True))),
                runner.submit(
                    _task(ToggleMutation("Bypass Order Precautions for API Orders", True), page=("API", "Precautions"))
                ),
            ]
            outcomes = [future.result(timeout=5) for future in futures]
    finally:
        timers.shutdown()

    assert outcomes == [TaskOutcome.APPLIED, TaskOutcome.APPLIED]
    assert read_only.toggled is True
    assert bypass.toggled is True
