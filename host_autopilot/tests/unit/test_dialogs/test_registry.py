from __future__ import annotations

import logging
from typing import List

import pytest
from hypothesis import given, strategies as st

from host_autopilot.automation.dialogs import (
    HandlerRegistry,
    RegistryFrozenError,
    WindowEventDispatcher,
)
from host_autopilot.automation.driver import WindowSignature, WindowSnapshot


def _noop(snapshot, context) -> None:
    return None


def test_first_match_follows_registration_order(ui) -> None:
    registry = HandlerRegistry()
    registry.add("second-factor", WindowSignature(title_prefix="Second Factor", control_name="Enter Read Only"), _noop)
    registry.add("security-code", WindowSignature(control_name="Enter Read Only"), _noop)

    two_factor = ui.window("Second Factor Authentication", ui.button("Enter Read Only"))
    security = ui.window("Security Code Card", ui.button("Enter Read Only"))

    assert registry.first_match(two_factor).name == "second-factor"
    assert registry.first_match(security).name == "security-code"
    assert registry.first_match(ui.window("Unrelated")) is None


@given(st.lists(st.booleans(), min_size=1, max_size=12))
def test_first_match_is_earliest_recognizing_handler(flags: List[bool]) -> None:
    registry = HandlerRegistry()
    for index, flag in enumerate(flags):
        registry.add(f"h{index}", lambda snapshot, flag=flag: flag, _noop)
    snapshot = WindowSnapshot(handle=1, class_name="", title="t", root=None)  # type: ignore[arg-type]
    match = registry.first_match(snapshot)
    if any(flags):
        assert match is not None and match.name == f"h{flags.index(True)}"
    else:
        assert match is None


def test_registry_rejects_duplicates_and_late_registration() -> None:
    registry = HandlerRegistry()
    registry.add("tip", WindowSignature(title="Tip of the Day"), _noop)
    with pytest.raises(ValueError):
        registry.add("tip", WindowSignature(title="Tip"), _noop)
    registry.freeze()
    with pytest.raises(RegistryFrozenError):
        registry.add("late", WindowSignature(title="Late"), _noop)
    assert registry.names() == ("tip",)
    assert len(registry) == 1


def test_raising_recognizer_counts_as_no_match(ui, caplog: pytest.LogCaptureFixture) -> None:
    registry = HandlerRegistry()

    def broken(snapshot) -> bool:
        raise RuntimeError("tree changed")

    registry.add("broken", broken, _noop)
    registry.add("fallback", WindowSignature(title="Notice"), _noop)
    with caplog.at_level(logging.WARNING):
        assert registry.first_match(ui.window("Notice")).name == "fallback"
    assert "broken" in caplog.text


class _Source:
    def __init__(self) -> None:
        self.callbacks = []

    def subscribe(self, callback) -> None:
        self.callbacks.append(callback)


def test_dispatcher_isolates_handler_failures(ui, caplog: pytest.LogCaptureFixture) -> None:
    registry = HandlerRegistry()
    seen: List[str] = []

    def explode(snapshot, context) -> None:
        raise RuntimeError("boom")

    registry.add("explodes", WindowSignature(title="Bad"), explode)
    registry.add("records", WindowSignature(title="Good"), lambda snapshot, context: seen.append(snapshot.title))
    dispatcher = WindowEventDispatcher(registry, context=object())  # type: ignore[arg-type]
    source = _Source()
    dispatcher.attach(source)

    with caplog.at_level(logging.ERROR):
        assert dispatcher.on_window_shown(ui.window("Bad")).name == "explodes"
    dispatcher.on_window_shown(ui.window("Good"))

    assert seen == ["Good"]
    assert "boom" in caplog.text
    assert dispatcher.handled == 2
    assert dispatcher.last_handler == "records"


def test_dispatcher_runs_only_first_match(ui) -> None:
    registry = HandlerRegistry()
    calls: List[str] = []
    registry.add("first", WindowSignature(title_prefix="Exit"), lambda s, c: calls.append("first"))
    registry.add("second", WindowSignature(title="Exit"), lambda s, c: calls.append("second"))
    dispatcher = WindowEventDispatcher(registry, context=object())  # type: ignore[arg-type]

    dispatcher.on_window_shown(ui.window("Exit"))
    assert calls == ["first"]
    assert dispatcher.on_window_shown(ui.window("Something else")) is None


def test_attach_freezes_registry_and_is_single_shot() -> None:
    registry = HandlerRegistry()
    dispatcher = WindowEventDispatcher(registry, context=object())  # type: ignore[arg-type]
    source = _Source()
    dispatcher.attach(source)
    assert registry.frozen
    assert source.callbacks == [dispatcher.on_window_shown]
    with pytest.raises(RuntimeError):
        dispatcher.attach(source)
