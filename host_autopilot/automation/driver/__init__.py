"""Public exports for the host automation driver."""

from .core import DesktopWindowSource, WindowCallback, WindowSignature, WindowSnapshot
from .controls import (
    ControlNode,
    UIAControl,
    describe,
    find_control,
    find_controls,
    has_text,
    normalize_label,
    require_control,
    walk,
)
from .exceptions import (
    AutomationError,
    ControlNotFoundError,
    PywinautoUnavailableError,
)

__all__ = [
    "DesktopWindowSource",
    "WindowCallback",
    "WindowSignature",
    "WindowSnapshot",
    "ControlNode",
    "UIAControl",
    "describe",
    "find_control",
    "find_controls",
    "has_text",
    "normalize_label",
    "require_control",
    "walk",
    "AutomationError",
    "ControlNotFoundError",
    "PywinautoUnavailableError",
]
