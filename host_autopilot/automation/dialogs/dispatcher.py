"""Window-event dispatch: classify each newly shown window and react to it."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Optional, Protocol

from ..driver import WindowCallback, WindowSnapshot
from .registry import HandlerRegistry, WindowHandler

if TYPE_CHECKING:  # pragma: no cover
    from .handlers.base import HandlerContext

logger = logging.getLogger(__name__)


class WindowEventSource(Protocol):  # pragma: no cover - interface only
    def subscribe(self, callback: WindowCallback) -> None:
        ...


class WindowEventDispatcher:
    """Evaluates the handler registry for every window-shown notification.

    Handlers run synchronously on the notifying thread, one event at a time.
    A failing handler is logged and never stops the dispatcher.
    """

    def __init__(self, registry: HandlerRegistry, context: "HandlerContext") -> None:
        self._registry = registry
        self._context = context
        self._lock = threading.Lock()
        self._attached = False
        self.handled = 0
        self.last_handler: Optional[str] = None

    def attach(self, source: WindowEventSource) -> None:
        """Subscribe to the source's window-shown stream (once per process)."""
        if self._attached:
            raise RuntimeError("Dispatcher is already attached to a window source.")
        self._registry.freeze()
        source.subscribe(self.on_window_shown)
        self._attached = True
        logger.debug("Dispatcher attached with handlers: %s", ", ".join(self._registry.names()))

    def on_window_shown(self, snapshot: WindowSnapshot) -> Optional[WindowHandler]:
        with self._lock:
            handler = self._registry.first_match(snapshot)
            if handler is None:
                logger.debug("No handler for window %s", snapshot.describe())
                return None
            logger.info("Detected %s: handled by '%s'", snapshot.describe(), handler.name)
            self.handled += 1
            self.last_handler = handler.name
            try:
                outcome: Any = handler.action(snapshot, self._context)
                if outcome is not None and not outcome:
                    logger.warning("Handler '%s' could not complete: %s", handler.name, getattr(outcome, "detail", outcome))
            except Exception:
                logger.exception("Handler '%s' failed for %s", handler.name, snapshot.describe())
            return handler
