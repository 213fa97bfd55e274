from __future__ import annotations

import itertools
from concurrent.futures import Executor, Future
from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

from host_autopilot.app.settings import AutopilotSettings
from host_autopilot.automation.driver import WindowSignature, WindowSnapshot

_handles = itertools.count(1000)


class FakeControl:
    """In-memory stand-in for a UI control."""

    def __init__(
        self,
        name: str = "",
        role: str = "Pane",
        *children: "FakeControl",
        text: str = "",
        toggled: Optional[bool] = None,
        enabled: bool = True,
        on_invoke: Optional[Callable[[], None]] = None,
    ) -> None:
        self.name = name
        self.role = role
        self._children = list(children)
        self.text = text
        self.toggled = toggled
        self.enabled = enabled
        self.on_invoke = on_invoke
        self.invocations = 0
        self.writes: List[Any] = []

    def children(self) -> List["FakeControl"]:
        return list(self._children)

    def add(self, child: "FakeControl") -> "FakeControl":
        self._children.append(child)
        return child

    def get_text(self) -> str:
        return self.text

    def set_text(self, text: str) -> None:
        self.writes.append(text)
        self.text = text

    def get_toggle_state(self) -> Optional[bool]:
        return self.toggled

    def set_toggle_state(self, state: bool) -> None:
        self.writes.append(state)
        self.toggled = state

    def invoke(self) -> None:
        self.invocations += 1
        if self.on_invoke is not None:
            self.on_invoke()

    def is_enabled(self) -> bool:
        return self.enabled


def make_window(title: str, *controls: FakeControl, class_name: str = "") -> WindowSnapshot:
    root = FakeControl(title, "Window", *controls)
    return WindowSnapshot(handle=next(_handles), class_name=class_name, title=title, root=root)


def button(name: str, **kwargs: Any) -> FakeControl:
    return FakeControl(name, "Button", **kwargs)


def label(text: str) -> FakeControl:
    return FakeControl(text, "Text")


class InlineExecutor(Executor):
    """Runs submitted work immediately on the caller's thread."""

    def __init__(self) -> None:
        self.submitted = 0
        self.closed = False

    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        if self.closed:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self.closed = True


class ManualTimers:
    """Timer service double whose callbacks run only when the test says so."""

    def __init__(self) -> None:
        self.scheduled: List[SimpleNamespace] = []

    def schedule(self, delay: float, callback: Callable[[], None], *, name: str = "") -> SimpleNamespace:
        handle = SimpleNamespace(delay=delay, callback=callback, name=name, cancelled=False)
        handle.cancel = lambda: setattr(handle, "cancelled", True)
        self.scheduled.append(handle)
        return handle

    def schedule_at(self, when, callback, *, name: str = "", now=None) -> SimpleNamespace:
        handle = self.schedule(0.0, callback, name=name)
        handle.when = when
        return handle

    def run_pending(self) -> int:
        ran = 0
        while self.scheduled:
            handle = self.scheduled.pop(0)
            if not handle.cancelled:
                handle.callback()
                ran += 1
        return ran

    def shutdown(self) -> None:
        self.scheduled.clear()


class FakeHost:
    """Host controller double recording the lifecycle calls it receives."""

    def __init__(self, *, exits_on_stop: bool = True, fail_launch: Optional[BaseException] = None) -> None:
        self.calls: List[str] = []
        self.exits_on_stop = exits_on_stop
        self.fail_launch = fail_launch
        self.stop_kwargs: Optional[dict] = None
        self.on_launch: Optional[Callable[[], None]] = None

    @property
    def process_id(self) -> Optional[int]:
        return 4242 if "launch" in self.calls else None

    def launch(self) -> None:
        self.calls.append("launch")
        if self.fail_launch is not None:
            raise self.fail_launch
        if self.on_launch is not None:
            self.on_launch()

    def request_stop(self, *, restart: bool = False, cold_restart: bool = False) -> None:
        self.calls.append("request_stop")
        self.stop_kwargs = {"restart": restart, "cold_restart": cold_restart}

    def wait_for_exit(self, timeout: float) -> bool:
        self.calls.append("wait_for_exit")
        return self.exits_on_stop

    def terminate(self) -> None:
        self.calls.append("terminate")


class FakeWindowSource:
    """Window source double: tests emit snapshots and expose visible windows."""

    def __init__(self) -> None:
        self.subscribers: List[Callable[[WindowSnapshot], None]] = []
        self.visible: List[WindowSnapshot] = []
        self.started = False
        self.stopped = False
        self.lookups = 0

    def subscribe(self, callback: Callable[[WindowSnapshot], None]) -> None:
        self.subscribers.append(callback)

    def emit(self, snapshot: WindowSnapshot) -> None:
        for callback in list(self.subscribers):
            callback(snapshot)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def find_window(self, signature: WindowSignature) -> Optional[WindowSnapshot]:
        self.lookups += 1
        for snapshot in self.visible:
            if signature.matches(snapshot):
                return snapshot
        return None


@pytest.fixture
def ui() -> SimpleNamespace:
    """Builders for fake control trees and window snapshots."""
    return SimpleNamespace(control=FakeControl, window=make_window, button=button, label=label)


@pytest.fixture
def inline_pool() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def manual_timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def window_source() -> FakeWindowSource:
    return FakeWindowSource()


@pytest.fixture
def settings(tmp_path) -> AutopilotSettings:
    return AutopilotSettings(
        host_command="host.exe",
        settings_dir=str(tmp_path / "host-settings"),
        login_id="edemo",
        password="demouser",
        command_server_port=0,
    )
