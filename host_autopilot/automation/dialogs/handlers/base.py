"""
Shared pieces for the default dialog handlers.

Handlers are plain functions of ``(snapshot, context)``. The context bundles
what they may touch: the session state (read-only), the settings that decide
their policy, and the lifecycle coordinator through which they request
transitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ....app.settings import AutopilotSettings
from ....session import LifecycleCoordinator, SessionStateMachine, StopRequest
from ...driver import WindowSignature, WindowSnapshot, has_text, normalize_label

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HandlerContext:
    """Everything a dialog handler needs besides the window itself."""

    session: SessionStateMachine
    settings: AutopilotSettings
    coordinator: Optional[LifecycleCoordinator] = None
    on_logged_in: Optional[Callable[[], None]] = None

    def request_stop(self, reason: str, *, restart: bool = False) -> bool:
        """Ask the coordinator for a shutdown; False if one is already underway."""
        if self.coordinator is None:
            logger.warning("Stop requested (%s) but no coordinator is attached", reason)
            return False
        return self.coordinator.request_stop(StopRequest(reason=reason, restart=restart))


def window(
    *,
    title: Optional[str] = None,
    title_prefix: Optional[str] = None,
    title_contains: Optional[str] = None,
    control: Optional[str] = None,
    role: Optional[str] = None,
    text: Sequence[str] = (),
    without_text: Sequence[str] = (),
) -> Callable[[WindowSnapshot], bool]:
    """Build a recognizer from title, control and label-text conditions.

    All given conditions must hold. ``text`` fragments must all be present
    somewhere in the window; ``without_text`` fragments must all be absent.
    """
    signature = WindowSignature(title=title, title_prefix=title_prefix, control_name=control, control_role=role)

    def recognizer(snapshot: WindowSnapshot) -> bool:
        if not signature.matches(snapshot):
            return False
        if title_contains is not None and title_contains not in normalize_label(snapshot.title):
            return False
        if any(not has_text(snapshot.root, fragment) for fragment in text):
            return False
        return not any(has_text(snapshot.root, fragment) for fragment in without_text)

    return recognizer


def any_of(*recognizers: Callable[[WindowSnapshot], bool]) -> Callable[[WindowSnapshot], bool]:
    def recognizer(snapshot: WindowSnapshot) -> bool:
        return any(item(snapshot) for item in recognizers)

    return recognizer


def normalize_choice(value: str) -> str:
    return value.strip().lower().replace("-", "").replace("_", "")
