from __future__ import annotations

from host_autopilot.automation.action import (
    press_button,
    press_first_button,
    select_page,
    set_toggle,
    type_text,
)


def test_set_toggle_reports_no_change_when_already_set(ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=True)
    result = set_toggle(ui.control("dlg", "Window", box), "Read-Only API", True)
    assert result.ok and not result.changed
    assert box.writes == []


def test_set_toggle_changes_state(ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=False)
    result = set_toggle(ui.control("dlg", "Window", box), "Read-Only API", True)
    assert result.ok and result.changed
    assert box.toggled is True


def test_set_toggle_missing_control_is_not_ok(ui) -> None:
    result = set_toggle(ui.control("dlg", "Window"), "Read-Only API", True)
    assert not result
    assert "could not find" in result.detail


def test_set_toggle_backend_error_is_reported(ui) -> None:
    box = ui.control("Read-Only API", "CheckBox", toggled=False)

    def broken(state: bool) -> None:
        raise RuntimeError("element not available")

    box.set_toggle_state = broken  # type: ignore[method-assign]
    result = set_toggle(ui.control("dlg", "Window", box), "Read-Only API", True)
    assert not result.ok
    assert "element not available" in result.detail


def test_press_button_skips_disabled(ui) -> None:
    ok = ui.button("OK", enabled=False)
    result = press_button(ui.control("dlg", "Window", ok), "OK")
    assert not result
    assert ok.invocations == 0


def test_press_first_button_uses_first_present(ui) -> None:
    close = ui.button("Close")
    root = ui.control("dlg", "Window", ui.button("Cancel"), close)
    assert press_first_button(root, ("OK", "Close", "Cancel"))
    assert close.invocations == 1
    assert not press_first_button(root, ("Yes", "No"))


def test_type_text_leaves_matching_value(ui) -> None:
    port = ui.control("Socket port", "Edit", text="7497")
    root = ui.control("dlg", "Window", port)
    assert type_text(root, "Socket port", "7497").changed is False
    assert type_text(root, "Socket port", "4002").changed is True
    assert port.text == "4002"


def test_select_page_invokes_each_tree_item(ui) -> None:
    api = ui.control("API", "TreeItem")
    page = ui.control("Settings", "TreeItem")
    root = ui.control("dlg", "Window", ui.control("tree", "Tree", api, ui.control("", "Group", page)))
    assert select_page(root, ("API", "Settings"))
    assert (api.invocations, page.invocations) == (1, 1)
    missing = select_page(root, ("API", "Precautions"))
    assert not missing
    assert "Precautions" in missing.detail
