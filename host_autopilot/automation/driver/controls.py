"""
Control-level helpers for probing a host window's control tree.

This module wraps pywinauto control handles with a consistent API that the
dialog handlers and configuration tasks can use without worrying about
backend specifics, and provides the lookups used to locate a named or typed
control inside a window.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Protocol, Sequence

from .exceptions import AutomationError, ControlNotFoundError

try:
    from pywinauto.base_wrapper import BaseWrapper  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    BaseWrapper = object  # type: ignore

_WHITESPACE = re.compile(r"\s+")


class ControlNode(Protocol):  # pragma: no cover - interface only
    """Protocol describing the minimal surface we expect from a control."""

    @property
    def name(self) -> str:
        ...

    @property
    def role(self) -> str:
        ...

    def children(self) -> Sequence["ControlNode"]:
        ...

    def get_text(self) -> str:
        ...

    def set_text(self, text: str) -> None:
        ...

    def get_toggle_state(self) -> Optional[bool]:
        ...

    def set_toggle_state(self, state: bool) -> None:
        ...

    def invoke(self) -> None:
        ...

    def is_enabled(self) -> bool:
        ...


def normalize_label(value: Optional[str]) -> str:
    """Collapse runs of whitespace so labels compare the way they are displayed."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def walk(root: ControlNode) -> Iterator[ControlNode]:
    """Depth-first, pre-order walk over a control tree (root included)."""
    stack: List[ControlNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        try:
            children = list(node.children())
        except Exception:  # pragma: no cover - tree changed underneath us
            continue
        stack.extend(reversed(children))


def _matches(node: ControlNode, name: Optional[str], role: Optional[str]) -> bool:
    if name is not None and normalize_label(node.name) != normalize_label(name):
        return False
    if role is not None and str(node.role).lower() != role.lower():
        return False
    return True


def find_control(
    root: ControlNode, *, name: Optional[str] = None, role: Optional[str] = None
) -> Optional[ControlNode]:
    """Return the first control matching name and/or role, or None."""
    if name is None and role is None:
        raise ValueError("find_control needs a name or a role")
    for node in walk(root):
        if _matches(node, name, role):
            return node
    return None


def require_control(
    root: ControlNode, *, name: Optional[str] = None, role: Optional[str] = None
) -> ControlNode:
    """Like ``find_control`` but raises ControlNotFoundError when absent."""
    node = find_control(root, name=name, role=role)
    if node is None:
        raise ControlNotFoundError(
            f"Control name={name!r}{' role=' + role if role else ''} not found."
        )
    return node


def find_controls(root: ControlNode, role: str) -> List[ControlNode]:
    """Return all controls with the given role, in tree order."""
    return [node for node in walk(root) if _matches(node, None, role)]


def has_text(root: ControlNode, fragment: str) -> bool:
    """Return True when any control's name or text contains ``fragment``."""
    wanted = normalize_label(fragment)
    for node in walk(root):
        if wanted in normalize_label(node.name):
            return True
        try:
            if wanted in normalize_label(node.get_text()):
                return True
        except Exception:
            continue
    return False


@dataclass(slots=True)
class UIAControl:
    """Concrete ControlNode backed by a pywinauto UIA wrapper."""

    wrapper: BaseWrapper

    @property
    def name(self) -> str:
        info = getattr(self.wrapper, "element_info", None)
        value = getattr(info, "name", None)
        if value is None and hasattr(self.wrapper, "window_text"):
            value = self.wrapper.window_text()
        return str(value or "")

    @property
    def role(self) -> str:
        info = getattr(self.wrapper, "element_info", None)
        return str(getattr(info, "control_type", None) or "")

    def children(self) -> List["UIAControl"]:
        return [UIAControl(child) for child in self.wrapper.children()]

    def get_text(self) -> str:  # pragma: no cover - UI interaction
        if hasattr(self.wrapper, "get_value"):
            try:
                return str(self.wrapper.get_value() or "")
            except Exception:
                pass
        if hasattr(self.wrapper, "window_text"):
            return str(self.wrapper.window_text() or "")
        if hasattr(self.wrapper, "texts"):
            texts = self.wrapper.texts()
            return str(texts[0]) if texts else ""
        return ""

    def set_text(self, text: str) -> None:  # pragma: no cover - UI interaction
        if hasattr(self.wrapper, "set_edit_text"):
            self.wrapper.set_edit_text(str(text))
        elif hasattr(self.wrapper, "set_value"):
            self.wrapper.set_value(str(text))
        elif hasattr(self.wrapper, "type_keys"):
            self.wrapper.type_keys("^a{BACKSPACE}", set_foreground=True)
            self.wrapper.type_keys(str(text), with_spaces=True, set_foreground=True)
        else:
            raise AutomationError(f"Control {self.name!r} does not support typing text.")

    def get_toggle_state(self) -> Optional[bool]:  # pragma: no cover - UI interaction
        if hasattr(self.wrapper, "get_toggle_state"):
            try:
                return self.wrapper.get_toggle_state() == 1
            except Exception:
                pass
        if hasattr(self.wrapper, "is_selected"):
            return bool(self.wrapper.is_selected())
        return None

    def set_toggle_state(self, state: bool) -> None:  # pragma: no cover - UI interaction
        current = self.get_toggle_state()
        if current is None:
            raise AutomationError(f"Control {self.name!r} does not expose toggle state.")
        if current == state:
            return
        if hasattr(self.wrapper, "toggle"):
            self.wrapper.toggle()
        elif state and hasattr(self.wrapper, "select"):
            self.wrapper.select()
        else:
            self.wrapper.click_input()

    def invoke(self) -> None:  # pragma: no cover - UI interaction
        if hasattr(self.wrapper, "invoke"):
            self.wrapper.invoke()
        elif hasattr(self.wrapper, "select"):
            self.wrapper.select()
        else:
            self.wrapper.click_input()

    def is_enabled(self) -> bool:  # pragma: no cover - UI interaction
        if hasattr(self.wrapper, "is_enabled"):
            return bool(self.wrapper.is_enabled())
        return True


def describe(node: Any) -> str:
    """Short human-readable description of a control for log messages."""
    role = getattr(node, "role", "") or "?"
    name = getattr(node, "name", "") or ""
    return f"{role}[{name}]"
