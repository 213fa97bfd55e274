"""
Core driver utilities for observing the host application's windows.

This module provides a thin shim around pywinauto's UIA backend: it turns the
host's visible top-level windows into ``WindowSnapshot`` values and delivers a
"window shown" notification for every window that newly appears, so the
dispatch engine never depends directly on pywinauto primitives.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Set

from .controls import ControlNode, UIAControl, find_control, normalize_label, walk
from .exceptions import PywinautoUnavailableError

try:
    from pywinauto import Desktop  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    Desktop = None  # type: ignore

logger = logging.getLogger(__name__)

WindowCallback = Callable[["WindowSnapshot"], None]


@dataclass(frozen=True, slots=True)
class WindowSnapshot:
    """A visible top-level window as seen at dispatch time."""

    handle: Any
    class_name: str
    title: str
    root: ControlNode
    process_id: Optional[int] = None

    def controls(self) -> Iterator[ControlNode]:
        """Walk the window's control tree depth-first."""
        return walk(self.root)

    def describe(self) -> str:
        return f"{self.class_name or '?'} '{self.title}'"


@dataclass(frozen=True, slots=True)
class WindowSignature:
    """Composite recognition key for a dialog.

    Every field that is set must match: window class, exact or prefix title
    text, and the presence of a named control. Combining them keeps dialogs
    that share similar titles apart.
    """

    class_name: Optional[str] = None
    title: Optional[str] = None
    title_prefix: Optional[str] = None
    control_name: Optional[str] = None
    control_role: Optional[str] = None

    def matches(self, snapshot: WindowSnapshot) -> bool:
        if self.class_name is not None and snapshot.class_name != self.class_name:
            return False
        title = normalize_label(snapshot.title)
        if self.title is not None and title != normalize_label(self.title):
            return False
        if self.title_prefix is not None and not title.startswith(normalize_label(self.title_prefix)):
            return False
        if self.control_name is not None or self.control_role is not None:
            if find_control(snapshot.root, name=self.control_name, role=self.control_role) is None:
                return False
        return True

    def __call__(self, snapshot: WindowSnapshot) -> bool:
        return self.matches(snapshot)


class DesktopWindowSource:
    """Notification feed of newly visible host windows backed by pywinauto.

    A dedicated daemon thread polls the visible top-level windows and calls
    every subscriber, in order, for each window handle that was not visible
    on the previous poll. Subscribers therefore run on this single thread and
    must return quickly.
    """

    def __init__(
        self,
        *,
        process_id: Optional[int] = None,
        poll_interval: float = 0.25,
        backend: str = "uia",
    ) -> None:
        if Desktop is None:
            raise PywinautoUnavailableError(
                "pywinauto is required for desktop observation but is not installed."
            )
        self._desktop = Desktop(backend=backend)
        self._process_id = process_id
        self._poll_interval = max(0.05, float(poll_interval))
        self._subscribers: List[WindowCallback] = []
        self._seen: Set[Any] = set()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def subscribe(self, callback: WindowCallback) -> None:
        self._subscribers.append(callback)

    def set_process_id(self, process_id: Optional[int]) -> None:
        """Restrict observation to the given host process."""
        self._process_id = process_id
        self._seen.clear()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="window-events", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None

    def snapshots(self) -> List[WindowSnapshot]:
        """Return snapshots of the currently visible host windows."""
        result: List[WindowSnapshot] = []
        for window in self._current_windows():
            snapshot = self._snapshot(window)
            if snapshot is not None:
                result.append(snapshot)
        return result

    def find_window(self, signature: WindowSignature) -> Optional[WindowSnapshot]:
        """Return the first currently visible window matching the signature."""
        for snapshot in self.snapshots():
            try:
                if signature.matches(snapshot):
                    return snapshot
            except Exception as exc:  # pragma: no cover - UI timing dependent
                logger.debug("Signature check failed for %s: %s", snapshot.describe(), exc)
        return None

    def close_windows(self) -> int:  # pragma: no cover - UI interaction
        """Ask every visible host window to close; returns how many were asked."""
        closed = 0
        for window in self._current_windows():
            try:
                window.close()
                closed += 1
            except Exception as exc:
                logger.debug("Unable to close window %s: %s", getattr(window, "handle", "?"), exc)
        return closed

    def _run(self) -> None:  # pragma: no cover - UI timing dependent
        while not self._stop_event.is_set():
            try:
                self._poll_once()
            except Exception as exc:
                logger.debug("Window poll failed: %s", exc)
            self._stop_event.wait(self._poll_interval)

    def _poll_once(self) -> None:
        current: Set[Any] = set()
        for window in self._current_windows():
            handle = getattr(window, "handle", None)
            if handle is None:
                continue
            if handle in self._seen:
                current.add(handle)
                continue
            snapshot = self._snapshot(window)
            if snapshot is None:
                # not ready yet, retried on the next poll
                continue
            current.add(handle)
            for callback in list(self._subscribers):
                try:
                    callback(snapshot)
                except Exception:
                    logger.exception("Window subscriber failed for %s", snapshot.describe())
        self._seen = current

    def _current_windows(self) -> List[Any]:
        query = {"visible_only": True}
        if self._process_id is not None:
            query["process"] = self._process_id
        try:
            return list(self._desktop.windows(**query))
        except Exception as exc:
            logger.debug("Unable to enumerate windows: %s", exc)
            return []

    @staticmethod
    def _snapshot(window: Any) -> Optional[WindowSnapshot]:
        try:
            info = window.element_info
            return WindowSnapshot(
                handle=window.handle,
                class_name=str(getattr(info, "class_name", "") or ""),
                title=str(window.window_text() or ""),
                root=UIAControl(window),
                process_id=getattr(info, "process_id", None),
            )
        except Exception as exc:
            logger.debug("Window vanished before it could be captured: %s", exc)
            return None
