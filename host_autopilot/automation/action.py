"""
Atomic UI mutations performed against a window's control tree.

Each action re-probes the tree before mutating it: the host may have rebuilt
its widgets since the snapshot was taken, so control handles are never cached
across calls. Failures are reported through ``ActionResult`` rather than
raised, which lets handlers decide whether a miss matters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .driver import ControlNode, describe, find_control, normalize_label

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActionResult:
    ok: bool
    changed: bool = False
    detail: str = ""

    def __bool__(self) -> bool:
        return self.ok


def set_toggle(
    root: ControlNode, name: str, desired: bool, *, role: Optional[str] = None
) -> ActionResult:
    """Set a check box or radio button to ``desired``."""
    control = find_control(root, name=name, role=role)
    if control is None:
        return ActionResult(ok=False, detail=f"could not find {name!r}")
    try:
        current = control.get_toggle_state()
        if current is None:
            return ActionResult(ok=False, detail=f"{describe(control)} has no toggle state")
        if current == desired:
            return ActionResult(ok=True, changed=False, detail=f"{name!r} is already set to: {desired}")
        control.set_toggle_state(desired)
    except Exception as exc:
        logger.warning("Unable to set %s to %s: %s", describe(control), desired, exc)
        return ActionResult(ok=False, detail=str(exc))
    return ActionResult(ok=True, changed=True, detail=f"{name!r} is now set to: {desired}")


def press_button(root: ControlNode, name: str, *, role: Optional[str] = "Button") -> ActionResult:
    """Invoke a button-like control."""
    control = find_control(root, name=name, role=role)
    if control is None:
        return ActionResult(ok=False, detail=f"could not find button {name!r}")
    try:
        if not control.is_enabled():
            return ActionResult(ok=False, detail=f"button {name!r} is disabled")
        control.invoke()
    except Exception as exc:
        logger.warning("Unable to press %s: %s", describe(control), exc)
        return ActionResult(ok=False, detail=str(exc))
    logger.info("Pressed '%s'", name)
    return ActionResult(ok=True, changed=True, detail=f"pressed {name!r}")


def press_first_button(root: ControlNode, names: Sequence[str]) -> ActionResult:
    """Press the first of several alternative button labels that exists."""
    for name in names:
        if find_control(root, name=name, role="Button") is not None:
            return press_button(root, name)
    return ActionResult(ok=False, detail=f"none of the buttons {list(names)!r} found")


def type_text(
    root: ControlNode, name: str, text: str, *, role: Optional[str] = "Edit"
) -> ActionResult:
    """Replace the text of an edit control, skipping the write when it already matches."""
    control = find_control(root, name=name, role=role)
    if control is None:
        return ActionResult(ok=False, detail=f"could not find field {name!r}")
    try:
        if normalize_label(control.get_text()) == normalize_label(text):
            return ActionResult(ok=True, changed=False, detail=f"{name!r} already contains the value")
        control.set_text(text)
    except Exception as exc:
        logger.warning("Unable to type into %s: %s", describe(control), exc)
        return ActionResult(ok=False, detail=str(exc))
    return ActionResult(ok=True, changed=True, detail=f"{name!r} updated")


def select_page(root: ControlNode, path: Sequence[str]) -> ActionResult:
    """Open a settings page by invoking each tree item along ``path``."""
    for item in path:
        control = find_control(root, name=item, role="TreeItem")
        if control is None:
            return ActionResult(ok=False, detail=f"could not find settings page {item!r}")
        try:
            control.invoke()
        except Exception as exc:
            logger.warning("Unable to select settings page %s: %s", item, exc)
            return ActionResult(ok=False, detail=str(exc))
    return ActionResult(ok=True, changed=bool(path))
