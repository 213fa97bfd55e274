"""Custom exception types for the automation driver layer."""

from __future__ import annotations

from ...errors import AutopilotError


class AutomationError(AutopilotError):
    """Base class for automation-related failures."""


class ControlNotFoundError(AutomationError):
    """Raised when a control cannot be located in a window's control tree."""


class PywinautoUnavailableError(AutomationError):
    """Raised when pywinauto is not installed but desktop observation is requested."""
